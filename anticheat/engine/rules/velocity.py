"""Velocity violation: too many actions inside one trailing minute.

Catches macros and scripted clients. Fires when the player's log count in
the minute ending at the analysed entry exceeds
``velocity_max_actions_per_minute``; exactly at the limit does not fire.
"""

from typing import Optional

from anticheat.models.detections import Detection, DetectionContext, VelocityEvidence
from anticheat.models.enums import DetectionKind, Severity

WINDOW_SECONDS = 60
DEFAULT_MAX_ACTIONS = 30


class VelocityRule:
    name = DetectionKind.VELOCITY_VIOLATION
    toggle = "velocity_check_enabled"

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        limit = context.config.integer("velocity_max_actions_per_minute", DEFAULT_MAX_ACTIONS)
        actions = context.logs_within(WINDOW_SECONDS)

        if len(actions) <= limit:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.HIGH,
            confidence=0.95,
            description=f"{len(actions)} actions in 1 minute (limit: {limit})",
            evidence=VelocityEvidence(
                action_count=len(actions),
                time_window_seconds=WINDOW_SECONDS,
                threshold=limit,
                action_types=[log.action_type for log in actions[:10]],
            ),
        )
