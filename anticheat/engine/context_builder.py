"""
Context Builder.

Assembles the DetectionContext for one log entry: the entry itself, the
player's bounded recent history, their profile snapshot and current risk
score. Building twice against unchanged stores yields equal contexts.
"""

from typing import Optional

import structlog

from anticheat.errors import LogNotFound
from anticheat.models.detections import DetectionContext
from anticheat.models.rule_config import RuleConfig
from anticheat.storage.base import LogStore, PlayerStore, RiskScoreStore

logger = structlog.get_logger()

DEFAULT_RECENT_LOG_WINDOW = 100


class ContextBuilder:
    """
    Builds per-invocation detection contexts.

    Attributes:
        logs: Game log store
        players: Player profile store
        risk_scores: Risk score store
        recent_log_window: Number of most recent entries loaded per player
    """

    def __init__(
        self,
        logs: LogStore,
        players: PlayerStore,
        risk_scores: RiskScoreStore,
        recent_log_window: int = DEFAULT_RECENT_LOG_WINDOW,
    ):
        self.logs = logs
        self.players = players
        self.risk_scores = risk_scores
        self.recent_log_window = recent_log_window

    def build(
        self,
        log_id: str,
        config: RuleConfig,
        player_id: Optional[str] = None,
        action_type: Optional[str] = None,
    ) -> DetectionContext:
        """
        Build the context for ``log_id``.

        Args:
            log_id: Log entry to analyse
            config: Rule configuration loaded for this invocation
            player_id: Player id; defaults to the log entry's player
            action_type: Action type; defaults to the log entry's action

        Returns:
            DetectionContext

        Raises:
            LogNotFound: If the log entry does not exist
        """
        log_entry = self.logs.get_log(log_id)
        if log_entry is None:
            logger.warning("log_entry_not_found", log_id=log_id)
            raise LogNotFound(log_id)

        player_id = player_id or log_entry.player_id
        action_type = action_type or log_entry.action_type

        recent_logs = self.logs.list_recent_logs(
            player_id, self.recent_log_window, until=log_entry.created_at
        )
        profile = self.players.get_player(player_id)
        risk_score = self.risk_scores.get_risk_score(player_id) or 0

        logger.debug(
            "detection_context_built",
            log_id=log_id,
            player_id=player_id,
            recent_logs=len(recent_logs),
            risk_score=risk_score,
        )

        return DetectionContext(
            player_id=player_id,
            action_type=action_type,
            log_entry=log_entry,
            recent_logs=tuple(recent_logs),
            player_profile=profile,
            risk_score=risk_score,
            config=config,
        )
