"""
Abstract storage interfaces for the anti-cheat engine.

The engine consumes every external collaborator through one narrow
repository interface per store, so rules and pipeline stages can be wired
to any backend (DuckDB, in-memory fakes, a remote database) without
touching detection logic. ``StorageBackend`` bundles all of them plus the
seeding and read-back operations a single-database deployment needs.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from anticheat.errors import PersistenceError
from anticheat.models.enums import InventoryChangeType
from anticheat.models.logs import LogEntry, PlayerProfile
from anticheat.models.records import (
    AuditEntry,
    ConfigEntry,
    InventoryChange,
    RiskScore,
    SecurityAlert,
    SessionRecord,
)


class StorageError(PersistenceError):
    """Base exception for all storage operation failures."""


class ConfigStore(ABC):
    """Rule configuration table."""

    @abstractmethod
    def list_enabled_rules(self) -> list[ConfigEntry]:
        """
        Return every configuration entry marked enabled.

        Raises:
            StorageError: If the configuration cannot be read
        """


class LogStore(ABC):
    """Append-only player action history."""

    @abstractmethod
    def get_log(self, log_id: str) -> Optional[LogEntry]:
        """Fetch one log entry by id, or None if absent."""

    @abstractmethod
    def list_recent_logs(
        self, player_id: str, limit: int, until: Optional[datetime] = None
    ) -> list[LogEntry]:
        """
        Most recent log entries for a player.

        When ``until`` is given, only entries created at or before it are
        returned. Results are ordered by created_at descending (most recent
        first).
        """

    @abstractmethod
    def list_logs_since(self, player_id: str, since: datetime) -> list[LogEntry]:
        """Log entries created at or after ``since``, most recent first."""


class PlayerStore(ABC):
    """Player profiles."""

    @abstractmethod
    def get_player(self, player_id: str) -> Optional[PlayerProfile]:
        """Fetch a player profile, or None if absent."""

    @abstractmethod
    def set_flagged(self, player_id: str, flagged: bool) -> bool:
        """
        Set the player's flagged state.

        Returns:
            True if the stored state changed, False if it already held
            ``flagged`` (or the player does not exist)
        """


class RiskScoreStore(ABC):
    """Per-player cumulative risk score."""

    @abstractmethod
    def get_risk_score(self, player_id: str) -> int:
        """Current score; 0 when the player has no row."""

    @abstractmethod
    def atomic_add_risk(
        self,
        player_id: str,
        delta: int,
        idempotency_key: Optional[str] = None,
        violation_at: Optional[datetime] = None,
    ) -> int:
        """
        Atomically add ``delta`` to the player's score (upsert).

        Must never lose an increment under concurrent calls for the same
        player. When ``idempotency_key`` was already applied, nothing is
        added and the current score is returned.

        Returns:
            The score after the increment
        """


class AlertStore(ABC):
    """Security alerts."""

    @abstractmethod
    def insert_alert(self, alert: SecurityAlert) -> str:
        """
        Persist an alert.

        Alerts are unique per (log_id, alert_type); inserting a duplicate
        returns the id of the alert already stored.

        Returns:
            The stored alert id
        """


class SessionStore(ABC):
    """Player sessions keyed by device fingerprint."""

    @abstractmethod
    def list_other_players_by_fingerprint(
        self, fingerprint: str, exclude_player_id: str
    ) -> set[str]:
        """Distinct player ids, other than ``exclude_player_id``, seen on a device."""


class InventoryLedger(ABC):
    """Inventory-change ledger."""

    @abstractmethod
    def list_recent_inventory_changes(
        self, player_id: str, change_type: InventoryChangeType, limit: int
    ) -> list[InventoryChange]:
        """Most recent ledger rows of one change type, most recent first."""


class AuditLog(ABC):
    """Admin-action audit log."""

    @abstractmethod
    def append_audit(self, entry: AuditEntry) -> str:
        """
        Append an audit entry and return its id.

        An entry whose ``dedupe_key`` was already recorded is not written
        again; the id of the stored entry is returned instead.
        """


class StorageBackend(
    ConfigStore,
    LogStore,
    PlayerStore,
    RiskScoreStore,
    AlertStore,
    SessionStore,
    InventoryLedger,
    AuditLog,
):
    """
    Single-database implementation of every collaborator interface.

    Adds the write paths owned by other systems (game logs, profiles,
    config, sessions, inventory) and read-back queries used by tooling and
    tests.
    """

    # =========================================================================
    # Seeding
    # =========================================================================

    @abstractmethod
    def write_log(self, entry: LogEntry) -> str:
        """Append a log entry."""

    @abstractmethod
    def write_player(self, profile: PlayerProfile) -> str:
        """Create or replace a player profile."""

    @abstractmethod
    def write_config(self, entry: ConfigEntry) -> str:
        """Create or replace a configuration entry."""

    @abstractmethod
    def write_session(self, session: SessionRecord) -> None:
        """Record a player session."""

    @abstractmethod
    def write_inventory_change(self, change: InventoryChange) -> str:
        """Append an inventory ledger row."""

    # =========================================================================
    # Read-back
    # =========================================================================

    @abstractmethod
    def read_alerts(self, player_id: Optional[str] = None) -> list[SecurityAlert]:
        """Alerts, optionally for one player, most recent first."""

    @abstractmethod
    def read_risk_record(self, player_id: str) -> Optional[RiskScore]:
        """Full risk score row, or None."""

    @abstractmethod
    def read_audit_entries(self, player_id: Optional[str] = None) -> list[AuditEntry]:
        """Audit entries, optionally for one player, oldest first."""
