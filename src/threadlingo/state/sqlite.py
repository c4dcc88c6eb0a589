"""SQLite-backed conversation state store.

Each ``(thread_id, key)`` slot is one row in ``thread_state`` holding the
value as canonical JSON.  Connections are short-lived: every operation
opens a configured connection through :func:`connection_scope` and closes
it before returning.  The blocking ``sqlite3`` calls run in a worker thread
(``asyncio.to_thread``) so the event loop is never stalled.

Atomicity
---------
``compare_and_set`` runs inside ``BEGIN IMMEDIATE``, which takes SQLite's
reserved lock before the read.  A concurrent writer in another connection
(or another process sharing the file) waits on ``busy_timeout`` until the
swap commits, so the read-compare-write triple is atomic across processes.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, NoReturn

from threadlingo.state.errors import (
    StateOperationContext,
    StateReadError,
    StateStoreError,
    StateWriteError,
)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS thread_state (
        thread_id  TEXT NOT NULL,
        key        TEXT NOT NULL,
        value_json TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (thread_id, key)
    )
    """,
)


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas.

    ``busy_timeout`` makes a writer wait for a competing transaction instead
    of failing immediately with ``database is locked``.
    """
    connection.execute("PRAGMA busy_timeout = 5000")
    return connection


@contextmanager
def connection_scope(db_path: Path, *, write: bool = False) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection with guaranteed cleanup semantics.

    Args:
        db_path: SQLite database file.
        write: When True, open an ``IMMEDIATE`` transaction up front, commit
            on success and roll back on exceptions.

    Behavior:
        - Always closes the connection in ``finally``.
        - Write scopes hold the reserved lock for the whole block.
    """
    connection = configure_connection(sqlite3.connect(str(db_path), isolation_level=None))
    try:
        if write:
            connection.execute("BEGIN IMMEDIATE")
        yield connection
        if write:
            connection.execute("COMMIT")
    except Exception:
        if write:
            try:
                connection.execute("ROLLBACK")
            except sqlite3.Error:
                # Preserve the original exception while best-effort rolling back.
                pass
        raise
    finally:
        connection.close()


def _encode(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _raise_read_error(exc: Exception, context: StateOperationContext) -> NoReturn:
    """Re-raise ``exc`` as a ``StateReadError`` with ``context``."""
    if isinstance(exc, StateStoreError):
        raise exc
    raise StateReadError(context=context, cause=exc) from exc


def _raise_write_error(exc: Exception, context: StateOperationContext) -> NoReturn:
    """Re-raise ``exc`` as a ``StateWriteError`` with ``context``."""
    if isinstance(exc, StateStoreError):
        raise exc
    raise StateWriteError(context=context, cause=exc) from exc


class SqliteStateStore:
    """Durable ``StateStore`` implementation on a single SQLite file."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def init_schema(self) -> None:
        """Create the parent directory and ``thread_state`` table if missing."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            with connection_scope(self._db_path, write=True) as conn:
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(statement)
        except Exception as exc:
            _raise_write_error(
                exc, StateOperationContext("state.init_schema", details=str(self._db_path))
            )

    # ── Async protocol ────────────────────────────────────────────────────────

    async def get(self, thread_id: str, key: str) -> Any | None:
        return await asyncio.to_thread(self._get_sync, thread_id, key)

    async def set(self, thread_id: str, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set_sync, thread_id, key, value)

    async def compare_and_set(
        self, thread_id: str, key: str, expected: Any | None, new: Any
    ) -> bool:
        return await asyncio.to_thread(self._compare_and_set_sync, thread_id, key, expected, new)

    # ── Blocking implementations ──────────────────────────────────────────────

    def _get_sync(self, thread_id: str, key: str) -> Any | None:
        try:
            with connection_scope(self._db_path) as conn:
                row = conn.execute(
                    "SELECT value_json FROM thread_state WHERE thread_id = ? AND key = ?",
                    (thread_id, key),
                ).fetchone()
        except Exception as exc:
            _raise_read_error(exc, StateOperationContext("state.get", thread_id, key))
        return json.loads(row[0]) if row else None

    def _set_sync(self, thread_id: str, key: str, value: Any) -> None:
        try:
            with connection_scope(self._db_path, write=True) as conn:
                conn.execute(
                    """
                    INSERT INTO thread_state (thread_id, key, value_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(thread_id, key)
                    DO UPDATE SET value_json = excluded.value_json,
                                  updated_at = excluded.updated_at
                    """,
                    (thread_id, key, _encode(value), _now_iso()),
                )
        except Exception as exc:
            _raise_write_error(exc, StateOperationContext("state.set", thread_id, key))

    def _compare_and_set_sync(
        self, thread_id: str, key: str, expected: Any | None, new: Any
    ) -> bool:
        try:
            with connection_scope(self._db_path, write=True) as conn:
                row = conn.execute(
                    "SELECT value_json FROM thread_state WHERE thread_id = ? AND key = ?",
                    (thread_id, key),
                ).fetchone()
                current = json.loads(row[0]) if row else None
                if current != expected:
                    return False
                conn.execute(
                    """
                    INSERT INTO thread_state (thread_id, key, value_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(thread_id, key)
                    DO UPDATE SET value_json = excluded.value_json,
                                  updated_at = excluded.updated_at
                    """,
                    (thread_id, key, _encode(new), _now_iso()),
                )
                return True
        except Exception as exc:
            _raise_write_error(
                exc, StateOperationContext("state.compare_and_set", thread_id, key)
            )
