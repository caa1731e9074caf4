"""
DuckDB storage implementation for the anti-cheat engine.

Provides a file-backed storage backend implementing every collaborator
interface in one database.

Key features:
- Thread-local connections to a shared database file
- Automatic, idempotent schema creation
- JSON columns for log metadata, alert evidence and audit metadata
- Alert de-duplication on (log_id, alert_type)
- Risk score increments applied in a single transaction with an idempotency
  ledger, serialized per instance and retried with exponential backoff when
  DuckDB reports a write-write conflict
- Comprehensive error handling with structured logging
"""

import json
import random
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

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

from .base import StorageBackend, StorageError

logger = structlog.get_logger(__name__)

# Conflicts DuckDB raises when two transactions touch the same row.
_RETRYABLE_ERRORS = (duckdb.TransactionException, duckdb.ConstraintException)

_LOG_COLUMNS = """
    log_id, player_id, action_type, action_category, value_diff,
    metadata, device_fingerprint, created_at
"""


def _to_db_ts(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_ts(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _loads(raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Attributes:
        db_path: Path to the DuckDB database file
        max_retries: Attempts for a conflicting risk score increment
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _risk_lock: Serializes risk score transactions within this process
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/anticheat.duckdb", max_retries: int = 5):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file
            max_retries: Attempts for a conflicting risk score increment
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_retries = max_retries

        self._local = threading.local()
        self._lock = threading.Lock()
        self._risk_lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Yields:
            DuckDB connection instance

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except duckdb.Error as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    @contextmanager
    def _transaction(self):
        """Run a block inside an explicit transaction, rolling back on error."""
        with self._get_connection() as conn:
            conn.execute("BEGIN TRANSACTION")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                try:
                    conn.execute("ROLLBACK")
                except duckdb.Error:
                    # Already rolled back by a failed COMMIT
                    logger.debug("duckdb_rollback_skipped", thread_id=threading.get_ident())
                raise

    def _initialize_schema(self):
        """
        Initialize all database tables and indexes.

        This method is idempotent and safe to call multiple times.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    # =========================================================
                    # Collaborator-owned tables
                    # =========================================================

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS game_logs (
                            log_id VARCHAR PRIMARY KEY,
                            player_id VARCHAR NOT NULL,
                            action_type VARCHAR NOT NULL,
                            action_category VARCHAR,
                            value_diff DOUBLE,
                            metadata JSON,
                            device_fingerprint VARCHAR,
                            created_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_game_logs_player_created
                        ON game_logs(player_id, created_at)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS players (
                            player_id VARCHAR PRIMARY KEY,
                            username VARCHAR,
                            is_flagged BOOLEAN NOT NULL DEFAULT FALSE,
                            profile JSON
                        )
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS anticheat_config (
                            key VARCHAR PRIMARY KEY,
                            value JSON,
                            is_enabled BOOLEAN NOT NULL DEFAULT TRUE
                        )
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS player_sessions (
                            player_id VARCHAR NOT NULL,
                            device_fingerprint VARCHAR NOT NULL,
                            created_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_player_sessions_fingerprint
                        ON player_sessions(device_fingerprint)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS inventory_changes_log (
                            change_id VARCHAR PRIMARY KEY,
                            player_id VARCHAR NOT NULL,
                            item_id VARCHAR NOT NULL,
                            change_type VARCHAR NOT NULL,
                            quantity INTEGER NOT NULL,
                            created_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_inventory_player_type
                        ON inventory_changes_log(player_id, change_type)
                    """)

                    # =========================================================
                    # Engine-owned tables
                    # =========================================================

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS security_alerts (
                            alert_id VARCHAR PRIMARY KEY,
                            player_id VARCHAR NOT NULL,
                            log_id VARCHAR NOT NULL,
                            alert_type VARCHAR NOT NULL,
                            severity VARCHAR NOT NULL,
                            description VARCHAR NOT NULL,
                            evidence JSON,
                            status VARCHAR NOT NULL,
                            requires_review BOOLEAN NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            UNIQUE (log_id, alert_type)
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_security_alerts_player
                        ON security_alerts(player_id)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS player_risk_scores (
                            player_id VARCHAR PRIMARY KEY,
                            total_risk_score INTEGER NOT NULL,
                            last_violation_at TIMESTAMP
                        )
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS risk_score_applications (
                            idempotency_key VARCHAR PRIMARY KEY,
                            player_id VARCHAR NOT NULL,
                            delta INTEGER NOT NULL,
                            applied_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS admin_actions (
                            entry_id VARCHAR PRIMARY KEY,
                            admin_id VARCHAR,
                            action_type VARCHAR NOT NULL,
                            target_player_id VARCHAR NOT NULL,
                            reason VARCHAR NOT NULL,
                            metadata JSON,
                            created_at TIMESTAMP NOT NULL,
                            dedupe_key VARCHAR UNIQUE
                        )
                    """)

                    logger.info("duckdb_schema_initialized")
                    self._initialized = True

            except duckdb.Error as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    @staticmethod
    def _row_to_log(row) -> LogEntry:
        return LogEntry(
            id=row[0],
            player_id=row[1],
            action_type=row[2],
            action_category=row[3],
            value_diff=row[4],
            metadata=_loads(row[5]) or {},
            device_fingerprint=row[6],
            created_at=_from_db_ts(row[7]),
        )

    # =========================================================================
    # Configuration
    # =========================================================================

    def list_enabled_rules(self) -> list[ConfigEntry]:
        """Read enabled rule configuration entries."""
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    "SELECT key, value, is_enabled FROM anticheat_config WHERE is_enabled = TRUE"
                ).fetchall()
                entries = [
                    ConfigEntry(key=row[0], value=_loads(row[1]), is_enabled=row[2])
                    for row in result
                ]
                logger.debug("config_entries_read", count=len(entries))
                return entries

        except duckdb.Error as e:
            logger.error("list_enabled_rules_failed", error=str(e))
            raise StorageError(f"Failed to read rule configuration: {e}") from e

    def write_config(self, entry: ConfigEntry) -> str:
        """Create or replace a configuration entry."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO anticheat_config (key, value, is_enabled)
                    VALUES (?, ?, ?)
                    """,
                    [entry.key, json.dumps(entry.value), entry.is_enabled],
                )
                return entry.key

        except duckdb.Error as e:
            logger.error("write_config_failed", key=entry.key, error=str(e))
            raise StorageError(f"Failed to write config entry: {e}") from e

    # =========================================================================
    # Game logs
    # =========================================================================

    def get_log(self, log_id: str) -> Optional[LogEntry]:
        """Fetch one log entry by id."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    f"SELECT {_LOG_COLUMNS} FROM game_logs WHERE log_id = ?",
                    [log_id],
                ).fetchone()
                return self._row_to_log(row) if row else None

        except duckdb.Error as e:
            logger.error("get_log_failed", log_id=log_id, error=str(e))
            raise StorageError(f"Failed to read log entry: {e}") from e

    def list_recent_logs(
        self, player_id: str, limit: int, until: Optional[datetime] = None
    ) -> list[LogEntry]:
        """Most recent log entries for a player, optionally up to ``until``."""
        try:
            with self._get_connection() as conn:
                query = f"SELECT {_LOG_COLUMNS} FROM game_logs WHERE player_id = ?"
                params = [player_id]

                if until is not None:
                    query += " AND created_at <= ?"
                    params.append(_to_db_ts(until))

                query += " ORDER BY created_at DESC, log_id DESC LIMIT ?"
                params.append(limit)

                result = conn.execute(query, params).fetchall()
                logs = [self._row_to_log(row) for row in result]
                logger.debug("recent_logs_read", player_id=player_id, count=len(logs))
                return logs

        except duckdb.Error as e:
            logger.error("list_recent_logs_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to read recent logs: {e}") from e

    def list_logs_since(self, player_id: str, since: datetime) -> list[LogEntry]:
        """Log entries created at or after ``since``."""
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    f"""
                    SELECT {_LOG_COLUMNS} FROM game_logs
                    WHERE player_id = ? AND created_at >= ?
                    ORDER BY created_at DESC, log_id DESC
                    """,
                    [player_id, _to_db_ts(since)],
                ).fetchall()
                return [self._row_to_log(row) for row in result]

        except duckdb.Error as e:
            logger.error("list_logs_since_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to read logs: {e}") from e

    def write_log(self, entry: LogEntry) -> str:
        """Append a log entry."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"INSERT INTO game_logs ({_LOG_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        entry.id,
                        entry.player_id,
                        entry.action_type,
                        entry.action_category,
                        entry.value_diff,
                        json.dumps(entry.metadata),
                        entry.device_fingerprint,
                        _to_db_ts(entry.created_at),
                    ],
                )
                return entry.id

        except duckdb.Error as e:
            logger.error("write_log_failed", log_id=entry.id, error=str(e))
            raise StorageError(f"Failed to write log entry: {e}") from e

    # =========================================================================
    # Players
    # =========================================================================

    def get_player(self, player_id: str) -> Optional[PlayerProfile]:
        """Fetch a player profile."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT player_id, username, is_flagged, profile FROM players WHERE player_id = ?",
                    [player_id],
                ).fetchone()
                if row is None:
                    return None
                extra = _loads(row[3]) or {}
                extra.update({"id": row[0], "username": row[1], "is_flagged": row[2]})
                return PlayerProfile(**extra)

        except duckdb.Error as e:
            logger.error("get_player_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to read player: {e}") from e

    def set_flagged(self, player_id: str, flagged: bool) -> bool:
        """Set the flagged state; returns True only when it changed."""
        try:
            with self._get_connection() as conn:
                changed = conn.execute(
                    """
                    UPDATE players SET is_flagged = ?
                    WHERE player_id = ? AND is_flagged <> ?
                    """,
                    [flagged, player_id, flagged],
                ).fetchone()[0]
                logger.debug("player_flag_set", player_id=player_id, changed=changed)
                return changed > 0

        except duckdb.Error as e:
            logger.error("set_flagged_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to update player flag: {e}") from e

    def write_player(self, profile: PlayerProfile) -> str:
        """Create or replace a player profile."""
        extra = profile.model_dump(mode="json", exclude={"id", "username", "is_flagged"})
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO players (player_id, username, is_flagged, profile)
                    VALUES (?, ?, ?, ?)
                    """,
                    [profile.id, profile.username, profile.is_flagged, json.dumps(extra)],
                )
                return profile.id

        except duckdb.Error as e:
            logger.error("write_player_failed", player_id=profile.id, error=str(e))
            raise StorageError(f"Failed to write player: {e}") from e

    # =========================================================================
    # Risk scores
    # =========================================================================

    def get_risk_score(self, player_id: str) -> int:
        """Current score, 0 when absent."""
        record = self.read_risk_record(player_id)
        return record.total_risk_score if record else 0

    def read_risk_record(self, player_id: str) -> Optional[RiskScore]:
        """Full risk score row."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    """
                    SELECT player_id, total_risk_score, last_violation_at
                    FROM player_risk_scores WHERE player_id = ?
                    """,
                    [player_id],
                ).fetchone()
                if row is None:
                    return None
                return RiskScore(
                    player_id=row[0],
                    total_risk_score=row[1],
                    last_violation_at=_from_db_ts(row[2]),
                )

        except duckdb.Error as e:
            logger.error("read_risk_record_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to read risk score: {e}") from e

    def atomic_add_risk(
        self,
        player_id: str,
        delta: int,
        idempotency_key: Optional[str] = None,
        violation_at: Optional[datetime] = None,
    ) -> int:
        """
        Atomically add ``delta`` to a player's score.

        The idempotency check, the upsert and the read-back run in one
        transaction. Transactions from this instance are serialized by
        ``_risk_lock``. A conflict with another writer on the same file
        aborts the transaction, which is retried from scratch with
        exponential backoff.
        """
        violation_at = _to_db_ts(violation_at or datetime.now(timezone.utc))

        for attempt in range(1, self.max_retries + 1):
            try:
                with self._risk_lock, self._transaction() as conn:
                    if idempotency_key is not None:
                        seen = conn.execute(
                            "SELECT 1 FROM risk_score_applications WHERE idempotency_key = ?",
                            [idempotency_key],
                        ).fetchone()
                        if seen:
                            current = conn.execute(
                                "SELECT total_risk_score FROM player_risk_scores WHERE player_id = ?",
                                [player_id],
                            ).fetchone()
                            logger.info(
                                "risk_increment_already_applied",
                                player_id=player_id,
                                idempotency_key=idempotency_key,
                            )
                            return current[0] if current else 0
                        conn.execute(
                            """
                            INSERT INTO risk_score_applications
                                (idempotency_key, player_id, delta, applied_at)
                            VALUES (?, ?, ?, ?)
                            """,
                            [idempotency_key, player_id, delta, violation_at],
                        )

                    conn.execute(
                        """
                        INSERT INTO player_risk_scores (player_id, total_risk_score, last_violation_at)
                        VALUES (?, ?, ?)
                        ON CONFLICT (player_id) DO UPDATE SET
                            total_risk_score = total_risk_score + EXCLUDED.total_risk_score,
                            last_violation_at = EXCLUDED.last_violation_at
                        """,
                        [player_id, delta, violation_at],
                    )
                    new_score = conn.execute(
                        "SELECT total_risk_score FROM player_risk_scores WHERE player_id = ?",
                        [player_id],
                    ).fetchone()[0]

                logger.debug(
                    "risk_score_incremented",
                    player_id=player_id,
                    delta=delta,
                    new_score=new_score,
                    attempt=attempt,
                )
                return new_score

            except _RETRYABLE_ERRORS as e:
                logger.warning(
                    "risk_increment_conflict",
                    player_id=player_id,
                    attempt=attempt,
                    error=str(e),
                )
                if attempt == self.max_retries:
                    raise StorageError(
                        f"Risk score increment conflicted {attempt} times: {e}"
                    ) from e
                time.sleep(min(0.005 * 2**attempt, 0.5) * random.uniform(0.5, 1.0))

            except duckdb.Error as e:
                logger.error("atomic_add_risk_failed", player_id=player_id, error=str(e))
                raise StorageError(f"Failed to increment risk score: {e}") from e

        raise StorageError("Risk score increment was not attempted")

    # =========================================================================
    # Alerts
    # =========================================================================

    def insert_alert(self, alert: SecurityAlert) -> str:
        """Persist an alert, returning the existing id for a duplicate."""
        try:
            with self._get_connection() as conn:
                try:
                    conn.execute(
                        """
                        INSERT INTO security_alerts (
                            alert_id, player_id, log_id, alert_type, severity,
                            description, evidence, status, requires_review, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        [
                            alert.alert_id,
                            alert.player_id,
                            alert.log_id,
                            alert.alert_type.value,
                            alert.severity.value,
                            alert.description,
                            json.dumps(alert.evidence),
                            alert.status.value,
                            alert.requires_review,
                            _to_db_ts(alert.created_at),
                        ],
                    )
                except duckdb.ConstraintException:
                    existing = conn.execute(
                        "SELECT alert_id FROM security_alerts WHERE log_id = ? AND alert_type = ?",
                        [alert.log_id, alert.alert_type.value],
                    ).fetchone()
                    if existing is None:
                        raise
                    logger.info(
                        "alert_already_recorded",
                        alert_id=existing[0],
                        log_id=alert.log_id,
                        alert_type=alert.alert_type.value,
                    )
                    return existing[0]

                logger.info("security_alert_written", alert_id=alert.alert_id)
                return alert.alert_id

        except duckdb.Error as e:
            logger.error("insert_alert_failed", log_id=alert.log_id, error=str(e))
            raise StorageError(f"Failed to write security alert: {e}") from e

    def read_alerts(self, player_id: Optional[str] = None) -> list[SecurityAlert]:
        """Read alerts with optional player filter."""
        try:
            with self._get_connection() as conn:
                query = """
                    SELECT alert_id, player_id, log_id, alert_type, severity,
                           description, evidence, status, requires_review, created_at
                    FROM security_alerts
                    WHERE 1=1
                """
                params = []

                if player_id:
                    query += " AND player_id = ?"
                    params.append(player_id)

                query += " ORDER BY created_at DESC"

                result = conn.execute(query, params).fetchall()

                alerts = []
                for row in result:
                    alerts.append(
                        SecurityAlert(
                            alert_id=row[0],
                            player_id=row[1],
                            log_id=row[2],
                            alert_type=row[3],
                            severity=row[4],
                            description=row[5],
                            evidence=_loads(row[6]) or {},
                            status=row[7],
                            requires_review=row[8],
                            created_at=_from_db_ts(row[9]),
                        )
                    )

                logger.debug("security_alerts_read", count=len(alerts))
                return alerts

        except duckdb.Error as e:
            logger.error("read_alerts_failed", error=str(e))
            raise StorageError(f"Failed to read security alerts: {e}") from e

    # =========================================================================
    # Sessions and inventory
    # =========================================================================

    def list_other_players_by_fingerprint(
        self, fingerprint: str, exclude_player_id: str
    ) -> set[str]:
        """Distinct other players seen on a device fingerprint."""
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    """
                    SELECT DISTINCT player_id FROM player_sessions
                    WHERE device_fingerprint = ? AND player_id <> ?
                    """,
                    [fingerprint, exclude_player_id],
                ).fetchall()
                return {row[0] for row in result}

        except duckdb.Error as e:
            logger.error("list_players_by_fingerprint_failed", error=str(e))
            raise StorageError(f"Failed to read sessions: {e}") from e

    def write_session(self, session: SessionRecord) -> None:
        """Record a player session."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO player_sessions (player_id, device_fingerprint, created_at)
                    VALUES (?, ?, ?)
                    """,
                    [session.player_id, session.device_fingerprint, _to_db_ts(session.created_at)],
                )

        except duckdb.Error as e:
            logger.error("write_session_failed", player_id=session.player_id, error=str(e))
            raise StorageError(f"Failed to write session: {e}") from e

    def list_recent_inventory_changes(
        self, player_id: str, change_type: InventoryChangeType, limit: int
    ) -> list[InventoryChange]:
        """Most recent ledger rows of one change type."""
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    """
                    SELECT change_id, player_id, item_id, change_type, quantity, created_at
                    FROM inventory_changes_log
                    WHERE player_id = ? AND change_type = ?
                    ORDER BY created_at DESC
                    LIMIT ?
                    """,
                    [player_id, change_type.value, limit],
                ).fetchall()
                return [
                    InventoryChange(
                        change_id=row[0],
                        player_id=row[1],
                        item_id=row[2],
                        change_type=row[3],
                        quantity=row[4],
                        created_at=_from_db_ts(row[5]),
                    )
                    for row in result
                ]

        except duckdb.Error as e:
            logger.error("list_inventory_changes_failed", player_id=player_id, error=str(e))
            raise StorageError(f"Failed to read inventory changes: {e}") from e

    def write_inventory_change(self, change: InventoryChange) -> str:
        """Append an inventory ledger row."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO inventory_changes_log (
                        change_id, player_id, item_id, change_type, quantity, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        change.change_id,
                        change.player_id,
                        change.item_id,
                        change.change_type.value,
                        change.quantity,
                        _to_db_ts(change.created_at),
                    ],
                )
                return change.change_id

        except duckdb.Error as e:
            logger.error("write_inventory_change_failed", player_id=change.player_id, error=str(e))
            raise StorageError(f"Failed to write inventory change: {e}") from e

    # =========================================================================
    # Audit log
    # =========================================================================

    def append_audit(self, entry: AuditEntry) -> str:
        """Append an audit entry, returning the existing id for a repeated dedupe key."""
        try:
            with self._get_connection() as conn:
                try:
                    conn.execute(
                        """
                        INSERT INTO admin_actions (
                            entry_id, admin_id, action_type, target_player_id,
                            reason, metadata, created_at, dedupe_key
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        [
                            entry.entry_id,
                            entry.admin_id,
                            entry.action_type.value,
                            entry.target_player_id,
                            entry.reason,
                            json.dumps(entry.metadata),
                            _to_db_ts(entry.created_at),
                            entry.dedupe_key,
                        ],
                    )
                except duckdb.ConstraintException:
                    existing = conn.execute(
                        "SELECT entry_id FROM admin_actions WHERE dedupe_key = ?",
                        [entry.dedupe_key],
                    ).fetchone()
                    if existing is None:
                        raise
                    logger.info(
                        "audit_entry_already_recorded",
                        entry_id=existing[0],
                        dedupe_key=entry.dedupe_key,
                    )
                    return existing[0]

                logger.info(
                    "audit_entry_written",
                    entry_id=entry.entry_id,
                    action_type=entry.action_type.value,
                )
                return entry.entry_id

        except duckdb.Error as e:
            logger.error("append_audit_failed", player_id=entry.target_player_id, error=str(e))
            raise StorageError(f"Failed to write audit entry: {e}") from e

    def read_audit_entries(self, player_id: Optional[str] = None) -> list[AuditEntry]:
        """Read audit entries with optional player filter."""
        try:
            with self._get_connection() as conn:
                query = """
                    SELECT entry_id, admin_id, action_type, target_player_id,
                           reason, metadata, created_at, dedupe_key
                    FROM admin_actions
                    WHERE 1=1
                """
                params = []

                if player_id:
                    query += " AND target_player_id = ?"
                    params.append(player_id)

                query += " ORDER BY created_at ASC"

                result = conn.execute(query, params).fetchall()
                return [
                    AuditEntry(
                        entry_id=row[0],
                        admin_id=row[1],
                        action_type=row[2],
                        target_player_id=row[3],
                        reason=row[4],
                        metadata=_loads(row[5]) or {},
                        created_at=_from_db_ts(row[6]),
                        dedupe_key=row[7],
                    )
                    for row in result
                ]

        except duckdb.Error as e:
            logger.error("read_audit_entries_failed", error=str(e))
            raise StorageError(f"Failed to read audit entries: {e}") from e

    def close(self) -> None:
        """Close this thread's connection."""
        connection = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            del self._local.connection
