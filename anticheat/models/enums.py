"""
Enumeration types for the anti-cheat engine.

All enums inherit from str to ensure JSON serialization compatibility.
"""

from enum import Enum


class Severity(str, Enum):
    """
    Severity levels for detections and alerts.

    Severity drives both alert review priority and risk-score weight.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    """
    Review status of a security alert.

    The engine only ever creates alerts as PENDING; the review workflow
    that moves them on is external.
    """

    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class DetectionKind(str, Enum):
    """
    Closed set of detectors. The value doubles as the alert type.
    """

    VELOCITY_VIOLATION = "velocity_violation"
    IMPOSSIBLE_VALUE = "impossible_value"
    CLOCK_DRIFT = "clock_drift"
    SUSPICIOUS_MONEY_GAIN = "suspicious_money_gain"
    BOT_BEHAVIOR = "bot_behavior"
    PATTERN_MATCH_PROBING = "pattern_match_probing"
    PATTERN_MATCH_HONEYPOT = "pattern_match_honeypot"
    MULTI_ACCOUNT_DETECTION = "multi_account_detection"
    INVENTORY_DUPLICATION = "inventory_duplication"
    EXCESSIVE_FAILED_VALIDATIONS = "excessive_failed_validations"
    HONEYPOT_TRIGGERED = "honeypot_triggered"


class InventoryChangeType(str, Enum):
    """Kinds of rows in the inventory-change ledger."""

    ADD = "add"
    REMOVE = "remove"
    TRANSFER = "transfer"


class AuditActionType(str, Enum):
    """System actions recorded in the admin-action audit log."""

    AUTO_FLAG = "auto_flag"
    CRITICAL_DETECTION = "critical_detection"
