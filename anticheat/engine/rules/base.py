"""Common interface every detector satisfies."""

from typing import Optional, Protocol, runtime_checkable

from anticheat.models.detections import Detection, DetectionContext
from anticheat.models.enums import DetectionKind


@runtime_checkable
class Rule(Protocol):
    """
    A single independent detector.

    Attributes:
        name: DetectionKind reported by this rule (doubles as alert type)
        toggle: Rule configuration key that enables the rule, or None when
            the rule always runs
    """

    name: DetectionKind
    toggle: Optional[str]

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        """Return a Detection when the rule fires, otherwise None."""
        ...
