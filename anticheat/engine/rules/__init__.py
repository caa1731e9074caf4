"""
Detection rules as a registry of objects.

Each rule is a small class exposing ``name`` (its DetectionKind), ``toggle``
(the rule configuration key that enables it, or None for rules that always
run) and ``evaluate(context)``. Rules never read each other's output, so the
registry order does not change the set of detections.

Rules that need a collaborator beyond the DetectionContext (sessions, the
inventory ledger) receive it at construction time.
"""

from anticheat.engine.rules.base import Rule
from anticheat.engine.rules.bot_behavior import BotBehaviorRule
from anticheat.engine.rules.clock_drift import ClockDriftRule
from anticheat.engine.rules.failed_validations import FailedValidationsRule
from anticheat.engine.rules.honeypot import HoneypotTriggerRule
from anticheat.engine.rules.impossible_value import ImpossibleValueRule
from anticheat.engine.rules.inventory import InventoryDuplicationRule
from anticheat.engine.rules.known_patterns import HoneypotPatternRule, ProbingPatternRule
from anticheat.engine.rules.money_gain import SuspiciousMoneyGainRule
from anticheat.engine.rules.multi_account import MultiAccountRule
from anticheat.engine.rules.velocity import VelocityRule
from anticheat.storage.base import InventoryLedger, SessionStore


def default_rules(sessions: SessionStore, inventory: InventoryLedger) -> list[Rule]:
    """The full detector bank, wired to its collaborators."""
    return [
        VelocityRule(),
        ImpossibleValueRule(),
        ClockDriftRule(),
        SuspiciousMoneyGainRule(),
        BotBehaviorRule(),
        ProbingPatternRule(),
        HoneypotPatternRule(),
        MultiAccountRule(sessions),
        InventoryDuplicationRule(inventory),
        FailedValidationsRule(),
        HoneypotTriggerRule(),
    ]


__all__ = [
    "Rule",
    "default_rules",
    "BotBehaviorRule",
    "ClockDriftRule",
    "FailedValidationsRule",
    "HoneypotPatternRule",
    "HoneypotTriggerRule",
    "ImpossibleValueRule",
    "InventoryDuplicationRule",
    "MultiAccountRule",
    "ProbingPatternRule",
    "SuspiciousMoneyGainRule",
    "VelocityRule",
]
