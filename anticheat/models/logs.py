"""
Player action telemetry and player profile models.

A LogEntry is the unit of analysis: one immutable row of the append-only
action history written by the game client/server.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LogEntry(BaseModel):
    """
    One player action from the event/log store.

    Attributes:
        id: Log entry identifier
        player_id: Player that performed the action
        action_type: Fine-grained action (e.g. "level_up", "economy_transaction")
        action_category: Coarse category (e.g. "economy", "inventory")
        value_diff: Signed change produced by the action, if numeric
        metadata: Free-form client/server payload
        device_fingerprint: Opaque device identifier, if captured
        created_at: Server-side write time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Log entry identifier")
    player_id: str = Field(description="Player that performed the action")
    action_type: str = Field(description="Fine-grained action type")
    action_category: Optional[str] = Field(default=None, description="Coarse action category")
    value_diff: Optional[float] = Field(default=None, description="Signed value change")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Action payload")
    device_fingerprint: Optional[str] = Field(default=None, description="Device fingerprint")
    created_at: datetime = Field(description="Server timestamp of the action")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        """Store all timestamps as timezone-aware UTC."""
        return ensure_utc(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Null metadata from the store becomes an empty payload."""
        return {} if v is None else v

    def flag(self, key: str) -> Any:
        """Return a metadata value, or None when absent."""
        return self.metadata.get(key)


class PlayerProfile(BaseModel):
    """
    Snapshot of a player profile as seen by the engine.

    Only ``is_flagged`` is interpreted here; everything else the player
    store returns is carried through untouched.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(description="Player identifier")
    username: Optional[str] = Field(default=None, description="Display name")
    is_flagged: bool = Field(default=False, description="Flagged for review")
