"""
Data storage layer.

One repository interface per external collaborator (configuration, game
logs, players, risk scores, alerts, sessions, inventory ledger, audit log),
implemented together by a file-backed DuckDB backend and an in-memory
backend for tests and local runs.
"""

from functools import lru_cache

from anticheat.config import get_settings

from .base import (
    AlertStore,
    AuditLog,
    ConfigStore,
    InventoryLedger,
    LogStore,
    PlayerStore,
    RiskScoreStore,
    SessionStore,
    StorageBackend,
    StorageError,
)
from .duckdb_storage import DuckDBStorage
from .memory_storage import InMemoryStorage


@lru_cache
def get_storage() -> StorageBackend:
    """
    Get cached storage backend instance (singleton).

    Returns the implementation selected by ``settings.db_type``.

    Returns:
        StorageBackend implementation instance
    """
    settings = get_settings()
    if settings.db_type == "memory":
        return InMemoryStorage()
    return DuckDBStorage(
        db_path=settings.db_path,
        max_retries=settings.risk_score_max_retries,
    )


__all__ = [
    "AlertStore",
    "AuditLog",
    "ConfigStore",
    "DuckDBStorage",
    "InMemoryStorage",
    "InventoryLedger",
    "LogStore",
    "PlayerStore",
    "RiskScoreStore",
    "SessionStore",
    "StorageBackend",
    "StorageError",
    "get_storage",
]
