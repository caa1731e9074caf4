"""
Detection models: the per-invocation context and rule findings.

Each detector emits a Detection tagged with its DetectionKind and carrying
one evidence shape per kind. Evidence models accept extra keys so a rule can
attach rule-specific extras without widening the shared schema.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny

from .enums import DetectionKind, Severity
from .logs import LogEntry, PlayerProfile
from .rule_config import RuleConfig


class DetectionContext(BaseModel):
    """
    Everything a rule may look at for one invocation.

    Built once by the ContextBuilder and shared read-only by every rule.
    ``recent_logs`` is ordered most-recent-first and bounded in size.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    player_id: str
    action_type: str
    log_entry: LogEntry
    recent_logs: tuple[LogEntry, ...] = ()
    player_profile: Optional[PlayerProfile] = None
    risk_score: int = Field(default=0, ge=0)
    config: RuleConfig = Field(default_factory=RuleConfig)

    @property
    def anchor(self) -> datetime:
        """Reference time for trailing windows: the analysed entry's timestamp."""
        return self.log_entry.created_at

    def logs_up_to_anchor(self) -> list[LogEntry]:
        """Recent logs created at or before the analysed entry."""
        anchor = self.anchor
        return [log for log in self.recent_logs if log.created_at <= anchor]

    def logs_within(self, seconds: float) -> list[LogEntry]:
        """Recent logs with ``anchor - seconds < created_at <= anchor``."""
        anchor = self.anchor
        return [
            log
            for log in self.recent_logs
            if 0 <= (anchor - log.created_at).total_seconds() < seconds
        ]


# =============================================================================
# Evidence payloads
# =============================================================================


class RuleEvidence(BaseModel):
    """Base evidence shape. Extra keys are the residual open map."""

    model_config = ConfigDict(extra="allow")


class VelocityEvidence(RuleEvidence):
    action_count: int
    time_window_seconds: int
    threshold: int
    action_types: list[str] = Field(default_factory=list)


class ImpossibleValueEvidence(RuleEvidence):
    check: str = Field(description="economy_amount | level_gain")
    value: float
    threshold: float
    source: Optional[str] = None


class ClockDriftEvidence(RuleEvidence):
    drift_seconds: float
    tolerance: float
    client_time: datetime
    server_time: datetime


class MoneyGainEvidence(RuleEvidence):
    total_gain: float
    transaction_count: int
    time_window_seconds: int
    threshold: float
    avg_per_transaction: float


class BotBehaviorEvidence(RuleEvidence):
    coefficient_of_variation: float
    mean_interval_ms: float
    std_dev_ms: float
    sample_size: int


class ProbingEvidence(RuleEvidence):
    failed_validations: int
    threshold: int


class HoneypotPatternEvidence(RuleEvidence):
    honeypot_variables: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)


class MultiAccountEvidence(RuleEvidence):
    account_count: int
    threshold: int
    fingerprint: str


class InventoryDuplicationEvidence(RuleEvidence):
    duplicated_items: int
    item_ids: list[str]
    sample_size: int


class FailedValidationsEvidence(RuleEvidence):
    failure_count: int
    threshold: int
    time_window_seconds: int
    failure_types: list[str] = Field(default_factory=list)


class HoneypotTriggerEvidence(RuleEvidence):
    honeypot_keys: list[str]


# =============================================================================
# Detection
# =============================================================================


class Detection(BaseModel):
    """
    A single rule's positive finding for one invocation.

    Transient: the AlertSink turns every Detection into exactly one
    SecurityAlert.
    """

    model_config = ConfigDict(frozen=True)

    rule_name: DetectionKind = Field(description="Detector that fired")
    severity: Severity = Field(description="Severity of the finding")
    confidence: float = Field(ge=0.0, le=1.0, description="Detector confidence")
    description: str = Field(description="Human-readable summary")
    evidence: SerializeAsAny[RuleEvidence] = Field(
        default_factory=RuleEvidence, description="Structured evidence"
    )

    def evidence_payload(self) -> dict:
        """Evidence as a JSON-compatible dict."""
        return self.evidence.model_dump(mode="json")
