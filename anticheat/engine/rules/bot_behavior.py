"""
Bot behaviour: machine-regular timing between actions.

Humans show a coefficient of variation (stddev / mean) in their
inter-action gaps well above 0.3; scripted clients usually sit below 0.1.

Detection Algorithm:
    1. Take the newest 20 log entries up to the analysed one (at least 10 required)
    2. Compute absolute gaps between consecutive entries in milliseconds
    3. CV = population stddev / mean of the gaps
    4. Fire if CV < 0.15 and 500ms < mean < 120s
"""

from typing import Optional

import numpy as np

from anticheat.models.detections import BotBehaviorEvidence, Detection, DetectionContext
from anticheat.models.enums import DetectionKind, Severity

SAMPLE_SIZE = 20
MIN_SAMPLE_SIZE = 10
MAX_COEFFICIENT_OF_VARIATION = 0.15
MIN_MEAN_INTERVAL_MS = 500
MAX_MEAN_INTERVAL_MS = 120_000


class BotBehaviorRule:
    name = DetectionKind.BOT_BEHAVIOR
    toggle = "bot_detection_enabled"

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        sample = context.logs_up_to_anchor()[:SAMPLE_SIZE]
        if len(sample) < MIN_SAMPLE_SIZE:
            return None

        times_ms = np.array([log.created_at.timestamp() * 1000.0 for log in sample])
        intervals = np.abs(np.diff(times_ms))

        mean = float(np.mean(intervals))
        if mean == 0:
            return None
        std_dev = float(np.std(intervals))
        cv = std_dev / mean

        if not (
            cv < MAX_COEFFICIENT_OF_VARIATION
            and MIN_MEAN_INTERVAL_MS < mean < MAX_MEAN_INTERVAL_MS
        ):
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.HIGH,
            confidence=0.80,
            description=f"Bot-like timing detected (CV: {cv:.3f})",
            evidence=BotBehaviorEvidence(
                coefficient_of_variation=cv,
                mean_interval_ms=mean,
                std_dev_ms=std_dev,
                sample_size=len(intervals),
            ),
        )
