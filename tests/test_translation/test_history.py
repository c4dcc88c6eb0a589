"""Unit tests for the bounded, newest-first history manager."""

import asyncio
from datetime import UTC, datetime

import pytest

from threadlingo.state.errors import StateReadError
from threadlingo.state.store import InMemoryStateStore
from threadlingo.translation.errors import HistoryConflictError
from threadlingo.translation.history import (
    COUNT_KEY,
    HISTORY_KEY,
    HISTORY_LIMIT,
    HistoryManager,
    build_entry,
    count_words,
    truncate_for_display,
)
from threadlingo.translation.models import Language

pytestmark = pytest.mark.unit

THREAD = "t1"
FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


def _entry(n: int):
    return build_entry(f"text {n}", Language.SPANISH, f"texto {n}", now=FIXED_NOW)


class TestTruncateForDisplay:
    def test_short_value_unchanged(self):
        assert truncate_for_display("x" * 80) == "x" * 80

    def test_exactly_at_limit_unchanged(self):
        assert truncate_for_display("x" * 100) == "x" * 100

    def test_long_value_cut_with_ellipsis(self):
        result = truncate_for_display("x" * 150)
        assert result == "x" * 100 + "..."
        assert len(result) == 103


class TestCountWords:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Hola", 1),
            ("Hola  mundo", 2),
            ("  leading and trailing  ", 3),
            ("tabs\tand\nnewlines", 3),
            ("", 0),
            ("   ", 0),
        ],
    )
    def test_counts_whitespace_delimited_tokens(self, value, expected):
        assert count_words(value) == expected


class TestBuildEntry:
    def test_truncates_both_fields_but_counts_full_translation(self):
        translation = " ".join(["palabra"] * 30)  # 239 characters
        entry = build_entry("y" * 150, Language.FRENCH, translation, now=FIXED_NOW)

        assert entry.text == "y" * 100 + "..."
        assert entry.translation == translation[:100] + "..."
        assert entry.word_count == 30
        assert entry.to_language is Language.FRENCH
        assert entry.timestamp == FIXED_NOW

    def test_defaults_timestamp_to_now_utc(self):
        entry = build_entry("Hello", Language.SPANISH, "Hola")
        assert entry.timestamp.tzinfo is not None


class TestReadAppendClear:
    async def test_read_of_new_thread_is_empty(self, history):
        assert await history.read(THREAD) == []

    async def test_append_prepends(self, history):
        await history.append(THREAD, _entry(1))
        updated = await history.append(THREAD, _entry(2))
        assert [e.text for e in updated] == ["text 2", "text 1"]
        assert [e.text for e in await history.read(THREAD)] == ["text 2", "text 1"]

    async def test_append_writes_count(self, history, store):
        await history.append(THREAD, _entry(1))
        await history.append(THREAD, _entry(2))
        assert await store.get(THREAD, COUNT_KEY) == 2

    async def test_eleventh_append_drops_oldest(self, history, store):
        for n in range(1, 12):
            updated = await history.append(THREAD, _entry(n))

        assert len(updated) == HISTORY_LIMIT
        assert updated[0].text == "text 11"
        assert updated[-1].text == "text 2"
        assert all(e.text != "text 1" for e in updated)
        assert await store.get(THREAD, COUNT_KEY) == HISTORY_LIMIT

    async def test_stored_shape_is_camel_case(self, history, store):
        await history.append(THREAD, _entry(1))
        stored = await store.get(THREAD, HISTORY_KEY)
        assert stored == [
            {
                "text": "text 1",
                "toLanguage": "Spanish",
                "translation": "texto 1",
                "wordCount": 2,
                "timestamp": "2026-01-02T03:04:05Z",
            }
        ]

    async def test_clear_resets_history_and_count(self, history, store):
        await history.append(THREAD, _entry(1))
        await history.clear(THREAD)
        assert await history.read(THREAD) == []
        assert await store.get(THREAD, HISTORY_KEY) == []
        assert await store.get(THREAD, COUNT_KEY) == 0

    async def test_threads_are_independent(self, history):
        await history.append("a", _entry(1))
        assert await history.read("b") == []

    async def test_corrupt_history_raises_read_error(self, history, store):
        await store.set(THREAD, HISTORY_KEY, [{"text": "missing fields"}])
        with pytest.raises(StateReadError) as exc_info:
            await history.read(THREAD)
        assert exc_info.value.context.operation == "history.read"
        assert exc_info.value.context.thread_id == THREAD
        assert exc_info.value.context.key == "history"


class TestConcurrentAppends:
    async def test_concurrent_appends_are_not_lost(self, history):
        await asyncio.gather(*(history.append(THREAD, _entry(n)) for n in range(5)))
        texts = {e.text for e in await history.read(THREAD)}
        assert texts == {f"text {n}" for n in range(5)}

    async def test_retries_after_a_lost_race(self):
        class RacingStore(InMemoryStateStore):
            """Loses the first compare-and-set to a simulated rival writer."""

            def __init__(self):
                super().__init__()
                self.cas_calls = 0

            async def compare_and_set(self, thread_id, key, expected, new):
                self.cas_calls += 1
                if self.cas_calls == 1:
                    rival = _entry(99).model_dump(mode="json", by_alias=True)
                    await self.set(thread_id, key, [rival])
                return await super().compare_and_set(thread_id, key, expected, new)

        racing = RacingStore()
        updated = await HistoryManager(racing).append(THREAD, _entry(1))

        assert racing.cas_calls == 2
        assert [e.text for e in updated] == ["text 1", "text 99"]

    async def test_gives_up_after_max_attempts(self):
        class AlwaysLosingStore(InMemoryStateStore):
            async def compare_and_set(self, thread_id, key, expected, new):
                return False

        manager = HistoryManager(AlwaysLosingStore(), max_attempts=3)
        with pytest.raises(HistoryConflictError, match="3 attempts"):
            await manager.append(THREAD, _entry(1))

    def test_max_attempts_must_be_positive(self, store):
        with pytest.raises(ValueError):
            HistoryManager(store, max_attempts=0)
