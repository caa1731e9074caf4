"""
Invocation contract: request and response bodies.

Field names are camelCase on the wire and snake_case in Python.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import DetectionKind, Severity


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DetectionRequest(_CamelModel):
    """One engine invocation for one log entry."""

    log_id: str = Field(description="Log entry to analyse")
    player_id: Optional[str] = Field(
        default=None, description="Player id; defaults to the log entry's player"
    )
    action_type: Optional[str] = Field(
        default=None, description="Action type; defaults to the log entry's action"
    )
    batch_mode: bool = Field(
        default=False, description="Reserved for bulk reprocessing callers"
    )

    @field_validator("log_id")
    @classmethod
    def validate_log_id_not_empty(cls, v: str) -> str:
        """Ensure logId is not blank."""
        if not v or not v.strip():
            raise ValueError("logId must not be empty")
        return v.strip()


class DetectionSummary(_CamelModel):
    rule: DetectionKind
    severity: Severity
    confidence: float


class DetectionResponse(_CamelModel):
    """Successful invocation summary."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "detectionsTriggered": 1,
                "newRiskScore": 40,
                "detections": [
                    {"rule": "impossible_value", "severity": "critical", "confidence": 1.0}
                ],
            }
        }
    )

    success: bool = True
    detections_triggered: int
    new_risk_score: int
    detections: list[DetectionSummary] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Failed invocation; never combined with a summary."""

    error: str
