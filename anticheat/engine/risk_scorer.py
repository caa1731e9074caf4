"""
Risk Score Updater.

Maps each detection's severity to fixed points, sums them for the
invocation and applies the sum as one atomic increment at the store. The
increment is keyed by the log id, so a retried invocation cannot count the
same log twice.

Severity weights:
    critical = 25, high = 15, medium = 10, low = 5
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

import structlog

from anticheat.models.detections import Detection
from anticheat.models.enums import Severity
from anticheat.storage.base import RiskScoreStore

logger = structlog.get_logger()

SEVERITY_POINTS = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
}


def compute_risk_delta(detections: Iterable[Detection]) -> int:
    """Sum of severity points over ``detections``."""
    return sum(SEVERITY_POINTS[d.severity] for d in detections)


class RiskScoreUpdater:
    """
    Applies severity-weighted increments to a player's risk score.

    Attributes:
        store: Risk score store providing an atomic add
    """

    def __init__(self, store: RiskScoreStore):
        self.store = store

    def apply(
        self,
        player_id: str,
        detections: list[Detection],
        current_score: int,
        log_id: Optional[str] = None,
        violation_at: Optional[datetime] = None,
    ) -> int:
        """
        Add the invocation's delta to the stored score.

        Args:
            player_id: Player to update
            detections: Detections from this invocation
            current_score: Score read when the context was built
            log_id: Idempotency key for the increment
            violation_at: Timestamp recorded as ``last_violation_at``

        Returns:
            The score after the increment (``current_score`` when nothing fired)
        """
        delta = compute_risk_delta(detections)
        if delta == 0:
            return current_score

        new_score = self.store.atomic_add_risk(
            player_id,
            delta,
            idempotency_key=log_id,
            violation_at=violation_at,
        )
        logger.info(
            "risk_score_updated",
            player_id=player_id,
            delta=delta,
            new_score=new_score,
        )
        return new_score
