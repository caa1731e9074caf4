"""Multi-account detection: device fingerprint shared by several players."""

from typing import Optional

from anticheat.models.detections import Detection, DetectionContext, MultiAccountEvidence
from anticheat.models.enums import DetectionKind, Severity
from anticheat.storage.base import SessionStore

DEFAULT_THRESHOLD = 3
FINGERPRINT_PREVIEW_CHARS = 16


class MultiAccountRule:
    name = DetectionKind.MULTI_ACCOUNT_DETECTION
    toggle = "multi_account_detection_enabled"

    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        fingerprint = context.log_entry.device_fingerprint
        if not fingerprint:
            return None

        others = self.sessions.list_other_players_by_fingerprint(fingerprint, context.player_id)
        threshold = context.config.integer("multi_account_threshold", DEFAULT_THRESHOLD)

        if len(others) < threshold:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.MEDIUM,
            confidence=0.70,
            description=f"{len(others)} accounts detected on same device",
            evidence=MultiAccountEvidence(
                account_count=len(others),
                threshold=threshold,
                fingerprint=fingerprint[:FINGERPRINT_PREVIEW_CHARS] + "...",
            ),
        )
