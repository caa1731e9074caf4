"""
Automated Response Executor.

Two independent responses:
    - Auto flag: when ``auto_flag_enabled`` and the updated score reaches
      ``auto_flag_threshold`` (default 150), the player is flagged. The
      clean -> flagged transition is one-way and idempotent; an audit entry
      is written only when the stored state actually changed.
    - Critical findings: any critical detection is always written to the
      audit log, naming the triggering rules, regardless of the score.
"""

from typing import Optional

import structlog

from anticheat.models.detections import Detection
from anticheat.models.enums import AuditActionType, Severity
from anticheat.models.records import AuditEntry
from anticheat.models.rule_config import RuleConfig
from anticheat.storage.base import AuditLog, PlayerStore

logger = structlog.get_logger()

DEFAULT_AUTO_FLAG_THRESHOLD = 150


class ResponseExecutor:
    """
    Executes automated enforcement after scoring.

    Attributes:
        players: Player store (flag updates)
        audit: Admin-action audit log
    """

    def __init__(self, players: PlayerStore, audit: AuditLog):
        self.players = players
        self.audit = audit

    def execute(
        self,
        player_id: str,
        detections: list[Detection],
        risk_score: int,
        config: RuleConfig,
        log_id: Optional[str] = None,
    ) -> bool:
        """
        Run automated responses for one invocation.

        Returns:
            True if this invocation flagged the player
        """
        flagged = self._auto_flag(player_id, risk_score, config, log_id)
        self._record_critical(player_id, detections, log_id)
        return flagged

    def _auto_flag(
        self, player_id: str, risk_score: int, config: RuleConfig, log_id: Optional[str]
    ) -> bool:
        if not config.flag("auto_flag_enabled"):
            return False

        threshold = config.integer("auto_flag_threshold", DEFAULT_AUTO_FLAG_THRESHOLD)
        if risk_score < threshold:
            return False

        if not self.players.set_flagged(player_id, True):
            logger.debug("player_already_flagged", player_id=player_id, risk_score=risk_score)
            return False

        self.audit.append_audit(
            AuditEntry(
                action_type=AuditActionType.AUTO_FLAG,
                target_player_id=player_id,
                reason=f"Risk score {risk_score} reached auto-flag threshold {threshold}",
                metadata={"log_id": log_id, "risk_score": risk_score, "threshold": threshold},
            )
        )
        logger.warning(
            "player_auto_flagged",
            player_id=player_id,
            risk_score=risk_score,
            threshold=threshold,
        )
        return True

    def _record_critical(
        self, player_id: str, detections: list[Detection], log_id: Optional[str]
    ) -> None:
        critical = [d for d in detections if d.severity == Severity.CRITICAL]
        if not critical:
            return

        rules = [d.rule_name.value for d in critical]
        dedupe_key = f"{log_id}:{AuditActionType.CRITICAL_DETECTION.value}" if log_id else None
        self.audit.append_audit(
            AuditEntry(
                action_type=AuditActionType.CRITICAL_DETECTION,
                target_player_id=player_id,
                reason=f"Critical detection: {', '.join(rules)}",
                metadata={
                    "log_id": log_id,
                    "detections": [d.model_dump(mode="json") for d in critical],
                },
                dedupe_key=dedupe_key,
            )
        )
        logger.warning("critical_detection_recorded", player_id=player_id, rules=rules)
