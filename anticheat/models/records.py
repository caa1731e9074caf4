"""
Persisted records produced or consumed by the engine.

Alerts, risk scores and audit entries are written by the engine; config
entries, sessions and inventory changes are only read.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .enums import AlertStatus, AuditActionType, DetectionKind, InventoryChangeType, Severity
from .logs import ensure_utc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SecurityAlert(BaseModel):
    """
    A persisted alert, one per Detection.

    ``requires_review`` is true exactly when severity is critical. The
    engine never mutates an alert after creation.

    Attributes:
        alert_id: Unique identifier for this alert
        player_id: Player the detection concerns
        log_id: Log entry that was analysed (dedup key together with alert_type)
        alert_type: Name of the rule that fired
        severity: Severity copied from the detection
        description: Human-readable summary
        evidence: Evidence payload copied from the detection
        status: Review status (always pending on creation)
        requires_review: Whether a human must review this alert
        created_at: When the alert was written
    """

    alert_id: str = Field(default_factory=lambda: str(uuid4()))
    player_id: str
    log_id: str
    alert_type: DetectionKind
    severity: Severity
    description: str
    evidence: dict[str, Any] = Field(default_factory=dict)
    status: AlertStatus = Field(default=AlertStatus.PENDING)
    requires_review: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class RiskScore(BaseModel):
    """One row per player; only ever incremented by the engine."""

    player_id: str
    total_risk_score: int = Field(default=0, ge=0)
    last_violation_at: Optional[datetime] = None


class AuditEntry(BaseModel):
    """Admin-action audit log row written for system actions."""

    entry_id: str = Field(default_factory=lambda: str(uuid4()))
    action_type: AuditActionType
    target_player_id: str
    reason: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    admin_id: Optional[str] = Field(default=None, description="None for system actions")
    dedupe_key: Optional[str] = Field(
        default=None, description="Entries sharing a key are recorded once"
    )
    created_at: datetime = Field(default_factory=_utcnow)


class ConfigEntry(BaseModel):
    """A row of the rule configuration store."""

    key: str
    value: Any = None
    is_enabled: bool = True


class SessionRecord(BaseModel):
    """A player session tied to a device fingerprint."""

    player_id: str
    device_fingerprint: str
    created_at: datetime = Field(default_factory=_utcnow)


class InventoryChange(BaseModel):
    """A row of the inventory-change ledger."""

    change_id: str = Field(default_factory=lambda: str(uuid4()))
    player_id: str
    item_id: str
    change_type: InventoryChangeType
    quantity: int = 1
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)
