"""Excessive failed validations within the trailing hour."""

from typing import Optional

from anticheat.models.detections import Detection, DetectionContext, FailedValidationsEvidence
from anticheat.models.enums import DetectionKind, Severity

WINDOW_SECONDS = 3600
DEFAULT_THRESHOLD = 10


class FailedValidationsRule:
    name = DetectionKind.EXCESSIVE_FAILED_VALIDATIONS
    toggle = None

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        # Only a literal ``true`` counts, not merely truthy values
        failures = [
            log
            for log in context.logs_within(WINDOW_SECONDS)
            if log.flag("validationFailed") is True
        ]
        threshold = context.config.integer("failed_validation_threshold", DEFAULT_THRESHOLD)

        if len(failures) <= threshold:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.HIGH,
            confidence=0.85,
            description=f"{len(failures)} failed validations in 1 hour",
            evidence=FailedValidationsEvidence(
                failure_count=len(failures),
                threshold=threshold,
                time_window_seconds=WINDOW_SECONDS,
                failure_types=[log.action_type for log in failures],
            ),
        )
