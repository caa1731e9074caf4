"""
Known exploit signatures in the analysed event's metadata.

Two independent rules share the ``pattern_matching_enabled`` toggle:
    - probing: the event failed validation and so did more than 5 of the
      player's recent entries
    - honeypot pattern: any ``__``-prefixed metadata key, or a truthy
      ``debugMode`` / ``__internal`` / ``__honeypot`` flag
"""

from typing import Optional

from anticheat.models.detections import (
    Detection,
    DetectionContext,
    HoneypotPatternEvidence,
    ProbingEvidence,
)
from anticheat.models.enums import DetectionKind, Severity

PATTERN_TOGGLE = "pattern_matching_enabled"

PROBING_THRESHOLD = 5
HIDDEN_KEY_PREFIX = "__"
HONEYPOT_FLAGS = ("__honeypot", "debugMode", "__internal")


class ProbingPatternRule:
    name = DetectionKind.PATTERN_MATCH_PROBING
    toggle = PATTERN_TOGGLE

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        if not context.log_entry.flag("validationFailed"):
            return None

        history = context.logs_up_to_anchor()
        failed = sum(1 for log in history if log.flag("validationFailed"))
        if failed <= PROBING_THRESHOLD:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.MEDIUM,
            confidence=0.75,
            description="Repeated validation failures detected (exploit probing)",
            evidence=ProbingEvidence(failed_validations=failed, threshold=PROBING_THRESHOLD),
        )


class HoneypotPatternRule:
    name = DetectionKind.PATTERN_MATCH_HONEYPOT
    toggle = PATTERN_TOGGLE

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        metadata = context.log_entry.metadata
        hidden = [key for key in metadata if key.startswith(HIDDEN_KEY_PREFIX)]
        flags = [key for key in HONEYPOT_FLAGS if metadata.get(key)]

        if not hidden and not flags:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.CRITICAL,
            confidence=0.99,
            description="Honeypot variable accessed (client tampering confirmed)",
            evidence=HoneypotPatternEvidence(honeypot_variables=hidden, flags=flags),
        )
