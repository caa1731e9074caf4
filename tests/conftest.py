"""
Pytest configuration and shared fixtures for the anti-cheat test suite.

Data factories, an in-memory storage backend, environment isolation and
reusable fixtures across all test types (unit, integration, property-based).
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

# Set testing environment BEFORE importing app
os.environ["TESTING"] = "true"
os.environ["DB_TYPE"] = "memory"

from anticheat.config import Settings
from anticheat.engine import AntiCheatEngine
from anticheat.models.detections import Detection, DetectionContext, RuleEvidence
from anticheat.models.enums import DetectionKind, InventoryChangeType, Severity
from anticheat.models.logs import LogEntry, PlayerProfile
from anticheat.models.records import ConfigEntry, InventoryChange, SessionRecord
from anticheat.models.rule_config import RuleConfig
from anticheat.storage.memory_storage import InMemoryStorage

# Fixed anchor so every window computation is deterministic
BASE_TIME = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Pydantic model factories, reusable across all test suites
# ---------------------------------------------------------------------------


def make_log_entry(
    player_id: str = "player_1",
    action_type: str = "attack",
    created_at: Optional[datetime] = None,
    metadata: Optional[dict[str, Any]] = None,
    **overrides,
) -> LogEntry:
    """Factory function for creating test LogEntry objects."""
    defaults = dict(
        id=f"log_{uuid4().hex[:12]}",
        player_id=player_id,
        action_type=action_type,
        action_category=None,
        value_diff=None,
        metadata=metadata or {},
        device_fingerprint=None,
        created_at=created_at or BASE_TIME,
    )
    defaults.update(overrides)
    return LogEntry(**defaults)


def make_history(
    count: int,
    spacing_seconds: float = 1.0,
    end: datetime = BASE_TIME,
    player_id: str = "player_1",
    **overrides,
) -> list[LogEntry]:
    """
    Evenly spaced log entries ending at ``end``, newest first.

    The first element is created exactly at ``end``.
    """
    return [
        make_log_entry(
            player_id=player_id,
            created_at=end - timedelta(seconds=i * spacing_seconds),
            **overrides,
        )
        for i in range(count)
    ]


def make_player(player_id: str = "player_1", **overrides) -> PlayerProfile:
    """Factory function for creating test PlayerProfile objects."""
    defaults = dict(id=player_id, username=f"user_{player_id}", is_flagged=False)
    defaults.update(overrides)
    return PlayerProfile(**defaults)


def make_context(
    log_entry: Optional[LogEntry] = None,
    recent_logs: Optional[list[LogEntry]] = None,
    config: Optional[dict[str, Any]] = None,
    action_type: Optional[str] = None,
    risk_score: int = 0,
    player_profile: Optional[PlayerProfile] = None,
) -> DetectionContext:
    """
    Factory function for creating test DetectionContext objects.

    The analysed entry is included in the history (as the store would
    return it) unless ``recent_logs`` is given explicitly.
    """
    log_entry = log_entry or make_log_entry()
    if recent_logs is None:
        recent_logs = [log_entry]
    recent_logs = sorted(recent_logs, key=lambda log: log.created_at, reverse=True)
    return DetectionContext(
        player_id=log_entry.player_id,
        action_type=action_type or log_entry.action_type,
        log_entry=log_entry,
        recent_logs=tuple(recent_logs),
        player_profile=player_profile,
        risk_score=risk_score,
        config=RuleConfig(config or {}),
    )


def make_detection(
    severity: Severity = Severity.HIGH,
    rule_name: DetectionKind = DetectionKind.VELOCITY_VIOLATION,
    confidence: float = 0.9,
    **overrides,
) -> Detection:
    """Factory function for creating test Detection objects."""
    defaults = dict(
        rule_name=rule_name,
        severity=severity,
        confidence=confidence,
        description=f"{rule_name.value} fired",
        evidence=RuleEvidence(),
    )
    defaults.update(overrides)
    return Detection(**defaults)


def make_inventory_add(item_id: str, player_id: str = "player_1", **overrides) -> InventoryChange:
    """Factory function for inventory ledger "add" rows."""
    defaults = dict(
        player_id=player_id,
        item_id=item_id,
        change_type=InventoryChangeType.ADD,
        created_at=BASE_TIME,
    )
    defaults.update(overrides)
    return InventoryChange(**defaults)


def seed_config(storage, **values) -> None:
    """Write enabled rule configuration entries."""
    for key, value in values.items():
        storage.write_config(ConfigEntry(key=key, value=value))


def seed_sessions(storage, fingerprint: str, player_ids: list[str]) -> None:
    for player_id in player_ids:
        storage.write_session(
            SessionRecord(player_id=player_id, device_fingerprint=fingerprint, created_at=BASE_TIME)
        )


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings():
    """Process settings for engine tests."""
    return Settings(db_type="memory", testing=True, invocation_timeout_seconds=10.0)


@pytest.fixture
def memory_storage():
    """Fresh in-memory storage backend seeded with one player."""
    storage = InMemoryStorage()
    storage.write_player(make_player("player_1"))
    return storage


@pytest.fixture
def engine(memory_storage, test_settings):
    """Full pipeline wired to the in-memory backend."""
    return AntiCheatEngine.from_storage(memory_storage, test_settings)


@pytest.fixture
def client(engine):
    """FastAPI test client with the engine dependency overridden."""
    from anticheat.main import app
    from anticheat.routers.detection import get_engine

    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
