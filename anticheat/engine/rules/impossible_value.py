"""Impossible values: server-side sanity caps on single events.

Two checks, both critical:
    - economy_transaction with ``metadata.source == "crime"`` and
      ``metadata.amount`` above ``max_cash_per_crime``
    - level_up whose ``valueDiff`` exceeds ``max_level_gain_per_event``
"""

import math
from typing import Any, Optional

from anticheat.models.detections import Detection, DetectionContext, ImpossibleValueEvidence
from anticheat.models.enums import DetectionKind, Severity

DEFAULT_MAX_CASH_PER_CRIME = 50_000
DEFAULT_MAX_LEVEL_GAIN = 5

CAPPED_SOURCE = "crime"


def _as_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN and infinities never exceed a cap
    return number if math.isfinite(number) else 0.0


class ImpossibleValueRule:
    name = DetectionKind.IMPOSSIBLE_VALUE
    toggle = None

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        if context.action_type == "economy_transaction":
            return self._check_economy(context)
        if context.action_type == "level_up":
            return self._check_level_gain(context)
        return None

    def _check_economy(self, context: DetectionContext) -> Optional[Detection]:
        entry = context.log_entry
        amount = _as_number(entry.flag("amount"))
        source = entry.flag("source")
        cap = context.config.number("max_cash_per_crime", DEFAULT_MAX_CASH_PER_CRIME)

        if source != CAPPED_SOURCE or amount <= cap:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.CRITICAL,
            confidence=1.0,
            description=f"Impossible money gain: ${amount:,.0f} from {source} (max: ${cap:,.0f})",
            evidence=ImpossibleValueEvidence(
                check="economy_amount", value=amount, threshold=cap, source=source
            ),
        )

    def _check_level_gain(self, context: DetectionContext) -> Optional[Detection]:
        gain = context.log_entry.value_diff
        cap = context.config.number("max_level_gain_per_event", DEFAULT_MAX_LEVEL_GAIN)

        if gain is None or not math.isfinite(gain) or gain <= cap:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.CRITICAL,
            confidence=1.0,
            description=f"Impossible level gain: +{gain:g} levels at once",
            evidence=ImpossibleValueEvidence(check="level_gain", value=gain, threshold=cap),
        )
