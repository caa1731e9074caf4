"""
In-memory storage backend.

Lock-guarded dictionaries implementing every collaborator interface. Used by
the test suite and for local runs with ``DB_TYPE=memory``. The single
re-entrant lock makes every operation, including the risk-score add,
atomic with respect to other threads in the process.
"""

import itertools
import threading
from datetime import datetime
from typing import Optional

import structlog

from anticheat.models.enums import InventoryChangeType
from anticheat.models.logs import LogEntry, PlayerProfile, ensure_utc
from anticheat.models.records import (
    AuditEntry,
    ConfigEntry,
    InventoryChange,
    RiskScore,
    SecurityAlert,
    SessionRecord,
)

from .base import StorageBackend

logger = structlog.get_logger(__name__)


class InMemoryStorage(StorageBackend):
    """Thread-safe in-process storage backend."""

    def __init__(self):
        self._lock = threading.RLock()
        self._seq = itertools.count()
        self._logs: dict[str, tuple[int, LogEntry]] = {}
        self._players: dict[str, PlayerProfile] = {}
        self._config: dict[str, ConfigEntry] = {}
        self._sessions: list[SessionRecord] = []
        self._inventory: list[tuple[int, InventoryChange]] = []
        self._alerts: dict[str, SecurityAlert] = {}
        self._alert_keys: dict[tuple[str, str], str] = {}
        self._risk: dict[str, RiskScore] = {}
        self._applied_keys: set[str] = set()
        self._audit: list[AuditEntry] = []
        self._audit_keys: dict[str, str] = {}

    # =========================================================================
    # Collaborator interfaces
    # =========================================================================

    def list_enabled_rules(self) -> list[ConfigEntry]:
        with self._lock:
            return [c for c in self._config.values() if c.is_enabled]

    def get_log(self, log_id: str) -> Optional[LogEntry]:
        with self._lock:
            row = self._logs.get(log_id)
            return row[1] if row else None

    def list_recent_logs(
        self, player_id: str, limit: int, until: Optional[datetime] = None
    ) -> list[LogEntry]:
        until = ensure_utc(until) if until is not None else None
        with self._lock:
            rows = [
                r
                for r in self._logs.values()
                if r[1].player_id == player_id and (until is None or r[1].created_at <= until)
            ]
        rows.sort(key=lambda r: (r[1].created_at, r[0]), reverse=True)
        return [entry for _, entry in rows[:limit]]

    def list_logs_since(self, player_id: str, since: datetime) -> list[LogEntry]:
        since = ensure_utc(since)
        with self._lock:
            rows = [
                r
                for r in self._logs.values()
                if r[1].player_id == player_id and r[1].created_at >= since
            ]
        rows.sort(key=lambda r: (r[1].created_at, r[0]), reverse=True)
        return [entry for _, entry in rows]

    def get_player(self, player_id: str) -> Optional[PlayerProfile]:
        with self._lock:
            return self._players.get(player_id)

    def set_flagged(self, player_id: str, flagged: bool) -> bool:
        with self._lock:
            profile = self._players.get(player_id)
            if profile is None or profile.is_flagged == flagged:
                return False
            self._players[player_id] = profile.model_copy(update={"is_flagged": flagged})
            return True

    def get_risk_score(self, player_id: str) -> int:
        with self._lock:
            record = self._risk.get(player_id)
            return record.total_risk_score if record else 0

    def atomic_add_risk(
        self,
        player_id: str,
        delta: int,
        idempotency_key: Optional[str] = None,
        violation_at: Optional[datetime] = None,
    ) -> int:
        with self._lock:
            record = self._risk.get(player_id) or RiskScore(player_id=player_id)
            if idempotency_key is not None:
                if idempotency_key in self._applied_keys:
                    logger.info(
                        "risk_increment_already_applied",
                        player_id=player_id,
                        idempotency_key=idempotency_key,
                    )
                    return record.total_risk_score
                self._applied_keys.add(idempotency_key)
            updated = RiskScore(
                player_id=player_id,
                total_risk_score=record.total_risk_score + delta,
                last_violation_at=violation_at or record.last_violation_at,
            )
            self._risk[player_id] = updated
            return updated.total_risk_score

    def insert_alert(self, alert: SecurityAlert) -> str:
        key = (alert.log_id, alert.alert_type.value)
        with self._lock:
            existing = self._alert_keys.get(key)
            if existing is not None:
                return existing
            self._alerts[alert.alert_id] = alert
            self._alert_keys[key] = alert.alert_id
            return alert.alert_id

    def list_other_players_by_fingerprint(
        self, fingerprint: str, exclude_player_id: str
    ) -> set[str]:
        with self._lock:
            return {
                s.player_id
                for s in self._sessions
                if s.device_fingerprint == fingerprint and s.player_id != exclude_player_id
            }

    def list_recent_inventory_changes(
        self, player_id: str, change_type: InventoryChangeType, limit: int
    ) -> list[InventoryChange]:
        with self._lock:
            rows = [
                r
                for r in self._inventory
                if r[1].player_id == player_id and r[1].change_type == change_type
            ]
        rows.sort(key=lambda r: (r[1].created_at, r[0]), reverse=True)
        return [change for _, change in rows[:limit]]

    def append_audit(self, entry: AuditEntry) -> str:
        with self._lock:
            if entry.dedupe_key is not None:
                existing = self._audit_keys.get(entry.dedupe_key)
                if existing is not None:
                    return existing
                self._audit_keys[entry.dedupe_key] = entry.entry_id
            self._audit.append(entry)
            return entry.entry_id

    # =========================================================================
    # Seeding
    # =========================================================================

    def write_log(self, entry: LogEntry) -> str:
        with self._lock:
            self._logs[entry.id] = (next(self._seq), entry)
            return entry.id

    def write_player(self, profile: PlayerProfile) -> str:
        with self._lock:
            self._players[profile.id] = profile
            return profile.id

    def write_config(self, entry: ConfigEntry) -> str:
        with self._lock:
            self._config[entry.key] = entry
            return entry.key

    def write_session(self, session: SessionRecord) -> None:
        with self._lock:
            self._sessions.append(session)

    def write_inventory_change(self, change: InventoryChange) -> str:
        with self._lock:
            self._inventory.append((next(self._seq), change))
            return change.change_id

    # =========================================================================
    # Read-back
    # =========================================================================

    def read_alerts(self, player_id: Optional[str] = None) -> list[SecurityAlert]:
        with self._lock:
            alerts = [
                a for a in self._alerts.values() if player_id is None or a.player_id == player_id
            ]
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    def read_risk_record(self, player_id: str) -> Optional[RiskScore]:
        with self._lock:
            return self._risk.get(player_id)

    def read_audit_entries(self, player_id: Optional[str] = None) -> list[AuditEntry]:
        with self._lock:
            return [
                e for e in self._audit if player_id is None or e.target_player_id == player_id
            ]
