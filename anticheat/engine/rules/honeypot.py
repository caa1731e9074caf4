"""Honeypot trigger: presence of a planted client-side key.

These keys never exist in a legitimate client, so their mere presence in
telemetry (even with a null value) proves tampering.
"""

from typing import Optional

from anticheat.models.detections import Detection, DetectionContext, HoneypotTriggerEvidence
from anticheat.models.enums import DetectionKind, Severity

HONEYPOT_KEYS = ("__devMode", "__adminPanel", "__unlockAll", "__godMode", "debugEnabled")


class HoneypotTriggerRule:
    name = DetectionKind.HONEYPOT_TRIGGERED
    toggle = "honeypot_enabled"

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        metadata = context.log_entry.metadata
        triggered = [key for key in HONEYPOT_KEYS if key in metadata]

        if not triggered:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.CRITICAL,
            confidence=1.0,
            description="Honeypot variable accessed (confirmed tampering)",
            evidence=HoneypotTriggerEvidence(honeypot_keys=triggered),
        )
