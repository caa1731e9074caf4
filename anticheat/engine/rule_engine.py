"""
Rule Engine.

Runs every enabled rule of the registry against one shared, immutable
DetectionContext and collects the non-null Detections. A rule that raises
is isolated: the failure is logged as a RuleEvaluationError and treated as
"no detection", and the remaining rules still run.
"""

from collections.abc import Iterable

import structlog

from anticheat.engine.rules.base import Rule
from anticheat.errors import RuleEvaluationError
from anticheat.models.detections import Detection, DetectionContext

logger = structlog.get_logger()


class RuleEngine:
    """
    Evaluates the detector bank.

    Attributes:
        rules: Registered rules, evaluated in order

    Example:
        >>> engine = RuleEngine(default_rules(storage, storage))
        >>> detections = engine.evaluate(context)
    """

    def __init__(self, rules: Iterable[Rule]):
        self.rules = list(rules)

    @staticmethod
    def is_enabled(rule: Rule, context: DetectionContext) -> bool:
        """Rules without a toggle always run."""
        return rule.toggle is None or context.config.flag(rule.toggle)

    def evaluate(self, context: DetectionContext) -> list[Detection]:
        """
        Run all enabled rules against ``context``.

        Returns:
            Detections in registry order; never raises for a rule failure
        """
        detections: list[Detection] = []
        skipped = 0
        failed: list[RuleEvaluationError] = []

        for rule in self.rules:
            if not self.is_enabled(rule, context):
                skipped += 1
                continue

            try:
                detection = rule.evaluate(context)
            except Exception as e:
                error = RuleEvaluationError(rule.name.value, e)
                failed.append(error)
                logger.error(
                    "rule_evaluation_failed",
                    rule=rule.name.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if detection is not None:
                logger.info(
                    "rule_triggered",
                    rule=detection.rule_name.value,
                    severity=detection.severity.value,
                    confidence=detection.confidence,
                )
                detections.append(detection)

        logger.debug(
            "rules_evaluated",
            total=len(self.rules),
            skipped=skipped,
            failed=len(failed),
            triggered=len(detections),
        )
        return detections
