"""
SQLite‑backed world state and simple migration system.

This module provides the connection helpers (``get_connection``),
the schema migrations applied on application start (``init_db``) and
``transaction``, which wraps one registry invocation in a single
SQLite transaction.  ``SQLiteWorldState`` implements the
``WorldState`` contract on top of the ``world_state`` table.

Every invocation runs inside ``BEGIN IMMEDIATE`` when it may write,
so a Create's existence check and its insert happen under the same
write lock.  Any exception rolls the transaction back, so a failed
invocation leaves no partial writes behind.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .config import settings
from .errors import StoreError
from .world_state import InMemoryWorldState, StateIterator, WorldState

logger = logging.getLogger(__name__)

# Shared by every invocation when ``settings.state_backend == "memory"``.
_memory_state: Optional[InMemoryWorldState] = None


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # asset_registry_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection is opened in autocommit mode (``isolation_level``
    of ``None``) so that ``transaction`` controls BEGIN/COMMIT
    explicitly.  ``check_same_thread`` is disabled because the ASGI
    server may open the connection in one worker thread and run the
    endpoint in another; a connection is still only used by one
    invocation at a time.
    """
    try:
        conn = sqlite3.connect(get_database_path(), isolation_level=None, check_same_thread=False)
    except sqlite3.Error as exc:
        raise StoreError(f"failed to open world state: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


class SQLiteWorldState(WorldState):
    """``WorldState`` over the ``world_state`` table of one connection."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_state(self, key: str) -> Optional[bytes]:
        try:
            row = self._conn.execute(
                "SELECT value FROM world_state WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"failed to read from world state: {exc}") from exc
        return bytes(row["value"]) if row is not None else None

    def put_state(self, key: str, value: bytes) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO world_state (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"failed to write to world state: {exc}") from exc

    def put_if_absent(self, key: str, value: bytes) -> bool:
        try:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO world_state (key, value) VALUES (?, ?)",
                (key, value),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"failed to write to world state: {exc}") from exc
        return cursor.rowcount == 1

    def del_state(self, key: str) -> None:
        try:
            self._conn.execute("DELETE FROM world_state WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StoreError(f"failed to delete from world state: {exc}") from exc

    def get_state_by_range(self, start_key: str = "", end_key: str = "") -> StateIterator:
        query = "SELECT key, value FROM world_state"
        where_clauses = []
        params = []
        if start_key:
            where_clauses.append("key >= ?")
            params.append(start_key)
        if end_key:
            where_clauses.append("key < ?")
            params.append(end_key)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY key ASC"
        try:
            cursor = self._conn.execute(query, tuple(params))
        except sqlite3.Error as exc:
            raise StoreError(f"failed to scan world state: {exc}") from exc

        def rows():
            try:
                for row in cursor:
                    yield row["key"], bytes(row["value"])
            except sqlite3.Error as exc:
                raise StoreError(f"failed to scan world state: {exc}") from exc

        return StateIterator(rows(), on_close=cursor.close)


@contextmanager
def transaction(immediate: bool = True) -> Iterator[WorldState]:
    """Yield a world state scoped to one invocation.

    For the SQLite backend the body runs inside a single transaction:
    ``BEGIN IMMEDIATE`` when ``immediate`` is true (invocations that
    may write), a deferred ``BEGIN`` otherwise.  The transaction is
    committed when the body returns and rolled back when it raises.
    The memory backend yields the shared in‑process state.
    """
    if settings.state_backend == "memory":
        yield get_memory_state()
        return

    conn = get_connection()
    try:
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        except sqlite3.Error as exc:
            raise StoreError(f"failed to begin transaction: {exc}") from exc
        try:
            yield SQLiteWorldState(conn)
        except BaseException:
            conn.rollback()
            raise
        try:
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"failed to commit transaction: {exc}") from exc
    finally:
        conn.close()


def get_memory_state() -> InMemoryWorldState:
    """Return the process‑wide in‑memory world state, creating it on demand."""
    global _memory_state
    if _memory_state is None:
        _memory_state = InMemoryWorldState()
    return _memory_state


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations in order.
    Nothing is done for the memory backend.
    """
    if settings.state_backend == "memory":
        return

    migrations: list[tuple[int, str]] = [
        # Migration 1: key-value world state
        (
            1,
            """
            -- Keys are asset IDs; values are JSON-encoded assets.  The
            -- default BINARY collation orders keys by their UTF-8 bytes,
            -- which is the order range scans return them in.
            CREATE TABLE IF NOT EXISTS world_state (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL
            );
            """,
        ),
    ]

    conn = get_connection()
    try:
        conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                conn.executescript(sql)
                conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                logger.info("Applied world state migration %s", version)
                current_version = version
    except sqlite3.Error as exc:
        raise StoreError(f"failed to initialise world state: {exc}") from exc
    finally:
        conn.close()
