"""
Pydantic v2 data models for the anti-cheat engine.

Model Organization:
    - enums: Severity, alert status, detection kinds, audit action types
    - logs: LogEntry telemetry and PlayerProfile snapshots
    - rule_config: RuleConfig key/value table with typed accessors
    - detections: DetectionContext, Detection and per-rule evidence shapes
    - records: SecurityAlert, RiskScore, AuditEntry and store rows
    - invocation: request/response contract
"""

from .detections import (
    BotBehaviorEvidence,
    ClockDriftEvidence,
    Detection,
    DetectionContext,
    FailedValidationsEvidence,
    HoneypotPatternEvidence,
    HoneypotTriggerEvidence,
    ImpossibleValueEvidence,
    InventoryDuplicationEvidence,
    MoneyGainEvidence,
    MultiAccountEvidence,
    ProbingEvidence,
    RuleEvidence,
    VelocityEvidence,
)
from .enums import AlertStatus, AuditActionType, DetectionKind, InventoryChangeType, Severity
from .invocation import DetectionRequest, DetectionResponse, DetectionSummary, ErrorResponse
from .logs import LogEntry, PlayerProfile
from .records import (
    AuditEntry,
    ConfigEntry,
    InventoryChange,
    RiskScore,
    SecurityAlert,
    SessionRecord,
)
from .rule_config import RuleConfig

__all__ = [
    # Enums
    "AlertStatus",
    "AuditActionType",
    "DetectionKind",
    "InventoryChangeType",
    "Severity",
    # Telemetry
    "LogEntry",
    "PlayerProfile",
    "RuleConfig",
    # Detections
    "Detection",
    "DetectionContext",
    "RuleEvidence",
    "VelocityEvidence",
    "ImpossibleValueEvidence",
    "ClockDriftEvidence",
    "MoneyGainEvidence",
    "BotBehaviorEvidence",
    "ProbingEvidence",
    "HoneypotPatternEvidence",
    "MultiAccountEvidence",
    "InventoryDuplicationEvidence",
    "FailedValidationsEvidence",
    "HoneypotTriggerEvidence",
    # Records
    "SecurityAlert",
    "RiskScore",
    "AuditEntry",
    "ConfigEntry",
    "SessionRecord",
    "InventoryChange",
    # Invocation
    "DetectionRequest",
    "DetectionResponse",
    "DetectionSummary",
    "ErrorResponse",
]
