"""Suspicious money gain: sustained economy income over one hour."""

from typing import Optional

from anticheat.models.detections import Detection, DetectionContext, MoneyGainEvidence
from anticheat.models.enums import DetectionKind, Severity

WINDOW_SECONDS = 3600
DEFAULT_THRESHOLD = 500_000

ECONOMY_CATEGORY = "economy"


class SuspiciousMoneyGainRule:
    name = DetectionKind.SUSPICIOUS_MONEY_GAIN
    toggle = None

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        gains = [
            log.value_diff
            for log in context.logs_within(WINDOW_SECONDS)
            if log.action_category == ECONOMY_CATEGORY
            and log.value_diff is not None
            and log.value_diff > 0
        ]
        total = sum(gains)
        threshold = context.config.number("suspicious_money_gain_threshold", DEFAULT_THRESHOLD)

        if total <= threshold:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.HIGH,
            confidence=0.85,
            description=f"Suspicious money gain: ${total:,.0f} in 1 hour",
            evidence=MoneyGainEvidence(
                total_gain=total,
                transaction_count=len(gains),
                time_window_seconds=WINDOW_SECONDS,
                threshold=threshold,
                avg_per_transaction=round(total / len(gains)),
            ),
        )
