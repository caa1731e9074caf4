"""
Alert Sink.

Turns every Detection into exactly one persisted SecurityAlert. Alerts are
keyed by (log_id, alert_type) at the store, so re-running an invocation
does not duplicate them. Write failures propagate to the caller.
"""

import structlog

from anticheat.models.detections import Detection
from anticheat.models.enums import Severity
from anticheat.models.records import SecurityAlert
from anticheat.storage.base import AlertStore

logger = structlog.get_logger()


def build_alert(detection: Detection, player_id: str, log_id: str) -> SecurityAlert:
    """Map a Detection onto a pending SecurityAlert."""
    return SecurityAlert(
        player_id=player_id,
        log_id=log_id,
        alert_type=detection.rule_name,
        severity=detection.severity,
        description=detection.description,
        evidence=detection.evidence_payload(),
        requires_review=detection.severity == Severity.CRITICAL,
    )


class AlertSink:
    """
    Persists security alerts.

    Attributes:
        store: Alert store
    """

    def __init__(self, store: AlertStore):
        self.store = store

    def record(self, detections: list[Detection], player_id: str, log_id: str) -> list[str]:
        """
        Persist one alert per detection.

        Returns:
            Stored alert ids, in detection order

        Raises:
            PersistenceError: If any alert cannot be written
        """
        alert_ids = []
        for detection in detections:
            alert = build_alert(detection, player_id, log_id)
            alert_ids.append(self.store.insert_alert(alert))

        if alert_ids:
            logger.info("security_alerts_recorded", count=len(alert_ids), log_id=log_id)
        return alert_ids
