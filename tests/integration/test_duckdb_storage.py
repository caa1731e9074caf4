"""
Integration tests for the DuckDB storage backend.

Uses a file-backed database under tmp_path: ``:memory:`` gives every
connection its own database, which breaks the per-thread connection model.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from anticheat.engine import AntiCheatEngine
from anticheat.models.enums import AuditActionType, DetectionKind, InventoryChangeType, Severity
from anticheat.models.invocation import DetectionRequest
from anticheat.models.records import AuditEntry, ConfigEntry, SecurityAlert
from anticheat.storage.duckdb_storage import DuckDBStorage
from tests.conftest import (
    BASE_TIME,
    make_history,
    make_inventory_add,
    make_log_entry,
    make_player,
    seed_config,
    seed_sessions,
)


@pytest.fixture
def duckdb_storage(tmp_path):
    storage = DuckDBStorage(db_path=str(tmp_path / "anticheat.duckdb"), max_retries=100)
    storage.write_player(make_player("player_1"))
    yield storage
    storage.close()


def _alert(log_id="log_1", alert_type=DetectionKind.VELOCITY_VIOLATION):
    return SecurityAlert(
        player_id="player_1",
        log_id=log_id,
        alert_type=alert_type,
        severity=Severity.HIGH,
        description="burst",
        evidence={"action_count": 35},
    )


class TestSchema:
    def test_schema_initialization_is_idempotent(self, tmp_path):
        path = str(tmp_path / "anticheat.duckdb")
        DuckDBStorage(db_path=path).write_config(ConfigEntry(key="honeypot_enabled", value=True))

        reopened = DuckDBStorage(db_path=path)

        assert [e.key for e in reopened.list_enabled_rules()] == ["honeypot_enabled"]


class TestConfigAndLogs:
    def test_config_values_round_trip_as_json(self, duckdb_storage):
        duckdb_storage.write_config(ConfigEntry(key="auto_flag_threshold", value=200))
        duckdb_storage.write_config(ConfigEntry(key="velocity_check_enabled", value=True))
        duckdb_storage.write_config(
            ConfigEntry(key="bot_detection_enabled", value=True, is_enabled=False)
        )

        entries = {e.key: e.value for e in duckdb_storage.list_enabled_rules()}

        assert entries == {"auto_flag_threshold": 200, "velocity_check_enabled": True}

    def test_log_entry_round_trip(self, duckdb_storage):
        entry = make_log_entry(
            action_type="economy_transaction",
            action_category="economy",
            value_diff=1500.5,
            metadata={"amount": 1500.5, "source": "job", "nested": {"a": [1, 2]}},
            device_fingerprint="fp-1",
        )
        duckdb_storage.write_log(entry)

        assert duckdb_storage.get_log(entry.id) == entry
        assert duckdb_storage.get_log("missing") is None

    def test_recent_logs_newest_first_and_bounded(self, duckdb_storage):
        history = make_history(8, spacing_seconds=3)
        for log in reversed(history):
            duckdb_storage.write_log(log)
        duckdb_storage.write_log(make_log_entry(player_id="other"))

        recent = duckdb_storage.list_recent_logs("player_1", 5)

        assert [log.id for log in recent] == [log.id for log in history[:5]]

    def test_recent_logs_up_to_a_timestamp(self, duckdb_storage):
        history = make_history(8, spacing_seconds=3)
        for log in history:
            duckdb_storage.write_log(log)

        recent = duckdb_storage.list_recent_logs("player_1", 3, until=history[4].created_at)

        assert [log.id for log in recent] == [log.id for log in history[4:7]]

    def test_logs_since(self, duckdb_storage):
        history = make_history(6, spacing_seconds=60)
        for log in history:
            duckdb_storage.write_log(log)

        since = duckdb_storage.list_logs_since("player_1", BASE_TIME - timedelta(seconds=120))

        assert [log.id for log in since] == [log.id for log in history[:3]]


class TestPlayers:
    def test_set_flagged_reports_state_change(self, duckdb_storage):
        assert duckdb_storage.set_flagged("player_1", True) is True
        assert duckdb_storage.set_flagged("player_1", True) is False
        assert duckdb_storage.get_player("player_1").is_flagged is True

    def test_unknown_player(self, duckdb_storage):
        assert duckdb_storage.get_player("ghost") is None
        assert duckdb_storage.set_flagged("ghost", True) is False

    def test_extra_profile_fields_are_kept(self, duckdb_storage):
        duckdb_storage.write_player(make_player("player_2", level=42))

        assert duckdb_storage.get_player("player_2").model_extra == {"level": 42}


class TestRiskScores:
    def test_upsert_creates_then_increments(self, duckdb_storage):
        assert duckdb_storage.get_risk_score("player_1") == 0
        assert duckdb_storage.atomic_add_risk("player_1", 25, violation_at=BASE_TIME) == 25
        assert duckdb_storage.atomic_add_risk("player_1", 15) == 40

        record = duckdb_storage.read_risk_record("player_1")
        assert record.total_risk_score == 40
        assert record.last_violation_at is not None

    def test_idempotency_key_applied_once(self, duckdb_storage):
        duckdb_storage.atomic_add_risk("player_1", 25, idempotency_key="log_1")
        again = duckdb_storage.atomic_add_risk("player_1", 25, idempotency_key="log_1")

        assert again == 25
        assert duckdb_storage.get_risk_score("player_1") == 25

    def test_concurrent_increments_are_not_lost(self, duckdb_storage):
        def bump(i):
            return duckdb_storage.atomic_add_risk("player_1", 10, idempotency_key=f"log_{i}")

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(bump, range(20)))

        assert duckdb_storage.get_risk_score("player_1") == 200

    def test_burst_of_same_player_increments_all_succeed(self, tmp_path):
        storage = DuckDBStorage(db_path=str(tmp_path / "burst.duckdb"))

        def bump(i):
            return storage.atomic_add_risk("player_1", 10, idempotency_key=f"log_{i}")

        with ThreadPoolExecutor(max_workers=16) as pool:
            scores = list(pool.map(bump, range(64)))

        assert storage.get_risk_score("player_1") == 640
        assert sorted(scores) == list(range(10, 650, 10))


class TestAlertsSessionsInventoryAudit:
    def test_alert_insert_is_deduplicated(self, duckdb_storage):
        first = duckdb_storage.insert_alert(_alert())
        second = duckdb_storage.insert_alert(_alert())
        other = duckdb_storage.insert_alert(_alert(alert_type=DetectionKind.BOT_BEHAVIOR))

        alerts = duckdb_storage.read_alerts("player_1")
        assert first == second
        assert other != first
        assert len(alerts) == 2
        assert {a.alert_type for a in alerts} == {
            DetectionKind.VELOCITY_VIOLATION,
            DetectionKind.BOT_BEHAVIOR,
        }
        assert all(a.evidence == {"action_count": 35} for a in alerts)

    def test_sessions_by_fingerprint(self, duckdb_storage):
        seed_sessions(duckdb_storage, "fp-1", ["player_1", "p2", "p3", "p3"])
        seed_sessions(duckdb_storage, "fp-2", ["p9"])

        assert duckdb_storage.list_other_players_by_fingerprint("fp-1", "player_1") == {"p2", "p3"}

    def test_recent_inventory_changes_filtered_by_type(self, duckdb_storage):
        for i in range(12):
            duckdb_storage.write_inventory_change(
                make_inventory_add(f"item_{i}", created_at=BASE_TIME - timedelta(minutes=i))
            )
        duckdb_storage.write_inventory_change(
            make_inventory_add("sword", change_type=InventoryChangeType.REMOVE)
        )

        adds = duckdb_storage.list_recent_inventory_changes(
            "player_1", InventoryChangeType.ADD, 10
        )

        assert [c.item_id for c in adds] == [f"item_{i}" for i in range(10)]

    def test_audit_entries_oldest_first(self, duckdb_storage):
        for minutes, action in [(2, AuditActionType.AUTO_FLAG), (1, AuditActionType.CRITICAL_DETECTION)]:
            duckdb_storage.append_audit(
                AuditEntry(
                    action_type=action,
                    target_player_id="player_1",
                    reason="test",
                    metadata={"log_id": "log_1"},
                    created_at=BASE_TIME - timedelta(minutes=minutes),
                )
            )

        entries = duckdb_storage.read_audit_entries("player_1")

        assert [e.action_type for e in entries] == [
            AuditActionType.AUTO_FLAG,
            AuditActionType.CRITICAL_DETECTION,
        ]
        assert entries[0].metadata == {"log_id": "log_1"}

    def test_audit_dedupe_key_is_recorded_once(self, duckdb_storage):
        def entry():
            return AuditEntry(
                action_type=AuditActionType.CRITICAL_DETECTION,
                target_player_id="player_1",
                reason="Critical detection: honeypot_triggered",
                dedupe_key="log_1:critical_detection",
            )

        first = duckdb_storage.append_audit(entry())
        second = duckdb_storage.append_audit(entry())

        entries = duckdb_storage.read_audit_entries("player_1")
        assert first == second
        assert [e.entry_id for e in entries] == [first]
        assert entries[0].dedupe_key == "log_1:critical_detection"


class TestPipelineOnDuckDB:
    def test_god_mode_scenario(self, duckdb_storage, test_settings):
        seed_config(
            duckdb_storage,
            pattern_matching_enabled=True,
            honeypot_enabled=True,
            auto_flag_enabled=True,
            auto_flag_threshold=50,
        )
        entry = make_log_entry(metadata={"__godMode": True})
        duckdb_storage.write_log(entry)
        engine = AntiCheatEngine.from_storage(duckdb_storage, test_settings)

        result = engine.run(DetectionRequest(log_id=entry.id))
        rerun = engine.run(DetectionRequest(log_id=entry.id))

        assert result.new_risk_score == rerun.new_risk_score == 50
        assert result.flagged is True
        assert rerun.flagged is False
        assert len(duckdb_storage.read_alerts("player_1")) == 2
        assert all(a.requires_review for a in duckdb_storage.read_alerts("player_1"))
        assert duckdb_storage.get_player("player_1").is_flagged is True
        actions = sorted(e.action_type.value for e in duckdb_storage.read_audit_entries("player_1"))
        assert actions == ["auto_flag", "critical_detection"]
