"""Tests for the SQLite-backed state store."""

import asyncio
import sqlite3

import pytest

from threadlingo.state.errors import (
    StateOperationContext,
    StateReadError,
    StateStoreError,
    StateWriteError,
)
from threadlingo.state.sqlite import SqliteStateStore, connection_scope

pytestmark = pytest.mark.db


class TestSchema:
    def test_init_schema_creates_table(self, sqlite_store):
        with connection_scope(sqlite_store.db_path) as conn:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'thread_state'"
            ).fetchone()
        assert row is not None

    def test_init_schema_is_idempotent(self, sqlite_store):
        sqlite_store.init_schema()
        sqlite_store.init_schema()

    def test_init_schema_failure_is_typed(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = SqliteStateStore(blocker / "state.db")
        with pytest.raises(StateWriteError) as exc_info:
            store.init_schema()
        assert exc_info.value.context.operation == "state.init_schema"
        assert exc_info.value.cause is not None


class TestGetSet:
    async def test_unset_slot_is_none(self, sqlite_store):
        assert await sqlite_store.get("t1", "history") is None

    async def test_round_trips_json_values(self, sqlite_store):
        value = [{"text": "Hello", "wordCount": 1, "toLanguage": "Spanish"}]
        await sqlite_store.set("t1", "history", value)
        assert await sqlite_store.get("t1", "history") == value

    async def test_set_overwrites(self, sqlite_store):
        await sqlite_store.set("t1", "count", 1)
        await sqlite_store.set("t1", "count", 2)
        assert await sqlite_store.get("t1", "count") == 2

    async def test_state_survives_a_new_store_instance(self, sqlite_store):
        await sqlite_store.set("t1", "count", 7)
        reopened = SqliteStateStore(sqlite_store.db_path)
        assert await reopened.get("t1", "count") == 7


class TestCompareAndSet:
    async def test_swap_on_absent_slot(self, sqlite_store):
        assert await sqlite_store.compare_and_set("t1", "history", None, [1]) is True
        assert await sqlite_store.get("t1", "history") == [1]

    async def test_stale_expected_is_rejected(self, sqlite_store):
        await sqlite_store.set("t1", "history", [2, 1])
        assert await sqlite_store.compare_and_set("t1", "history", [1], [3, 1]) is False
        assert await sqlite_store.get("t1", "history") == [2, 1]

    async def test_concurrent_swaps_from_same_value_only_one_wins(self, sqlite_store):
        await sqlite_store.set("t1", "history", [])
        outcomes = await asyncio.gather(
            *(sqlite_store.compare_and_set("t1", "history", [], [n]) for n in range(5))
        )
        assert outcomes.count(True) == 1
        stored = await sqlite_store.get("t1", "history")
        assert len(stored) == 1


class TestErrors:
    async def test_read_without_schema_raises_read_error(self, tmp_path):
        store = SqliteStateStore(tmp_path / "empty.db")
        with pytest.raises(StateReadError) as exc_info:
            await store.get("t1", "history")
        assert isinstance(exc_info.value.cause, sqlite3.OperationalError)
        assert "state.get" in str(exc_info.value)
        assert exc_info.value.context.thread_id == "t1"
        assert exc_info.value.context.key == "history"
        assert exc_info.value.thread_id == "t1"

    async def test_write_without_schema_raises_write_error(self, tmp_path):
        store = SqliteStateStore(tmp_path / "empty.db")
        with pytest.raises(StateWriteError):
            await store.set("t1", "count", 1)

    def test_store_errors_share_a_base(self):
        assert issubclass(StateReadError, StateStoreError)
        assert issubclass(StateWriteError, StateStoreError)

    def test_message_names_operation_and_slot(self):
        error = StateWriteError(
            context=StateOperationContext("state.compare_and_set", "t1", "history")
        )
        assert str(error) == "state.compare_and_set thread='t1' key='history'"
        assert error.cause is None

    def test_message_includes_details(self):
        context = StateOperationContext("state.init_schema", details="/tmp/x.db")
        assert context.describe() == "state.init_schema /tmp/x.db"


class TestConnectionScope:
    def test_write_scope_rolls_back_on_error(self, sqlite_store):
        with pytest.raises(RuntimeError):
            with connection_scope(sqlite_store.db_path, write=True) as conn:
                conn.execute(
                    "INSERT INTO thread_state VALUES ('t1', 'count', '1', '2026-01-01')"
                )
                raise RuntimeError("boom")

        with connection_scope(sqlite_store.db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM thread_state").fetchone()[0] == 0
