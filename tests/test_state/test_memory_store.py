"""Unit tests for InMemoryStateStore and create_state_store."""

import pytest

from threadlingo.config import StateSettings
from threadlingo.state.sqlite import SqliteStateStore
from threadlingo.state.store import InMemoryStateStore, create_state_store

pytestmark = pytest.mark.unit


class TestGetSet:
    async def test_unset_slot_is_none(self, store):
        assert await store.get("t1", "history") is None

    async def test_set_then_get(self, store):
        await store.set("t1", "count", 3)
        assert await store.get("t1", "count") == 3

    async def test_slots_are_scoped_by_thread(self, store):
        await store.set("t1", "count", 1)
        await store.set("t2", "count", 2)
        assert await store.get("t1", "count") == 1
        assert await store.get("t2", "count") == 2
        assert store.thread_ids() == {"t1", "t2"}

    async def test_returned_values_are_copies(self, store):
        """Mutating a value read from the store must not change stored state."""
        await store.set("t1", "history", [{"text": "a"}])
        value = await store.get("t1", "history")
        value.append({"text": "b"})
        assert await store.get("t1", "history") == [{"text": "a"}]

    async def test_stored_values_are_copies(self, store):
        original = [{"text": "a"}]
        await store.set("t1", "history", original)
        original[0]["text"] = "changed"
        assert await store.get("t1", "history") == [{"text": "a"}]


class TestCompareAndSet:
    async def test_swap_on_absent_slot_with_none_expected(self, store):
        assert await store.compare_and_set("t1", "history", None, [1]) is True
        assert await store.get("t1", "history") == [1]

    async def test_swap_when_expected_matches(self, store):
        await store.set("t1", "history", [1])
        assert await store.compare_and_set("t1", "history", [1], [2, 1]) is True
        assert await store.get("t1", "history") == [2, 1]

    async def test_no_swap_when_expected_is_stale(self, store):
        await store.set("t1", "history", [2, 1])
        assert await store.compare_and_set("t1", "history", [1], [3, 1]) is False
        assert await store.get("t1", "history") == [2, 1]

    async def test_no_swap_when_slot_appeared(self, store):
        await store.set("t1", "history", [])
        assert await store.compare_and_set("t1", "history", None, [1]) is False


class TestCreateStateStore:
    def test_memory_backend(self):
        assert isinstance(create_state_store(StateSettings(backend="memory")), InMemoryStateStore)

    def test_sqlite_backend_creates_schema(self, tmp_path):
        db_path = tmp_path / "nested" / "state.db"
        created = create_state_store(StateSettings(backend="sqlite", path=str(db_path)))
        assert isinstance(created, SqliteStateStore)
        assert created.db_path == db_path
        assert db_path.exists()
