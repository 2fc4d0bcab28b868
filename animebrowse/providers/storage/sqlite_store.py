"""SQLite-backed durable key-value store.

Persists cache namespaces to a SQLite database on disk so the CLI and the
API server keep their caches across restarts.  Uses sync ``sqlite3``: each
operation touches a single small JSON blob, so blocking is negligible and
cache reads stay synchronous for their callers.

Each namespace is one row.  There is no cross-process coordination; two
processes writing the same key race and the last write wins.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.utils.logging import get_logger

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    item_key   TEXT PRIMARY KEY,
    item_value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO {table} (item_key, item_value)
VALUES (?, ?)
ON CONFLICT(item_key)
DO UPDATE SET item_value = excluded.item_value,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT item_value FROM {table} WHERE item_key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE item_key = ?;"

_ALL_KEYS_SQL = "SELECT item_key FROM {table} ORDER BY item_key;"


class SQLiteKeyValueStore(IKeyValueStore):
    """String store backed by one SQLite table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Parent directories are created
        on :meth:`initialize`.
    table_name:
        Table name to use, so several stores can share one database file.
    """

    def __init__(self, db_path: str | Path, table_name: str = "kv_store") -> None:
        self._db_path = Path(db_path)
        self._table = table_name
        self._initialized = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the table.  Called lazily on first access if skipped."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(_CREATE_TABLE_SQL.format(table=self._table))
            conn.commit()
        finally:
            conn.close()
        self._initialized = True
        self._logger.info(
            "kv_store_initialized",
            db_path=str(self._db_path),
            table=self._table,
        )

    # ------------------------------------------------------------------
    # IKeyValueStore implementation
    # ------------------------------------------------------------------

    def get_item(self, key: str) -> str | None:
        conn = self._open()
        try:
            cursor = conn.execute(_SELECT_SQL.format(table=self._table), (key,))
            row = cursor.fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._open()
        try:
            conn.execute(_UPSERT_SQL.format(table=self._table), (key, value))
            conn.commit()
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = self._open()
        try:
            conn.execute(_DELETE_SQL.format(table=self._table), (key,))
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._open()
        try:
            cursor = conn.execute(_ALL_KEYS_SQL.format(table=self._table))
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_provider_name(self) -> str:
        return f"sqlite:{self._table}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        if not self._initialized:
            self.initialize()
        return self._connect()

    def _connect(self) -> sqlite3.Connection:
        """Open a new SQLite connection with WAL mode."""
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn
