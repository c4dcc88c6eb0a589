"""Bounded, newest-first translation history per conversation thread.

Each thread owns two slots in the state store:

``history``
    A list of serialized ``HistoryEntry`` dicts, newest first, never longer
    than ``HISTORY_LIMIT``.
``count``
    The stored history length, kept alongside for cheap reads.

Append protocol
---------------
``HistoryManager.append`` is an optimistic read-modify-write:

1. read the raw ``history`` value,
2. prepend the new entry and keep the first ``HISTORY_LIMIT`` items,
3. ``compare_and_set`` the result against the value read in step 1,
4. on conflict (another writer got in first) go back to step 1.

After ``max_attempts`` lost races the append fails with
``HistoryConflictError`` rather than overwriting someone else's entry.
With the bundled stores, whose ``compare_and_set`` is atomic, concurrent
appends to one thread never lose updates.  A store whose
``compare_and_set`` is a plain get-then-set does not give that guarantee:
two writers can both observe the same old value and the later ``set``
drops the earlier entry.  That race is known and accepted for such stores.

``count`` is written after the history swap succeeds, so a crash between
the two writes can leave ``count`` stale; ``history`` is authoritative and
responses always derive ``translationCount`` from it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from pydantic import ValidationError

from threadlingo.state.errors import StateOperationContext, StateReadError
from threadlingo.state.store import StateStore
from threadlingo.translation.errors import HistoryConflictError
from threadlingo.translation.models import HistoryEntry, Language

logger = logging.getLogger(__name__)

HISTORY_KEY = "history"
COUNT_KEY = "count"

# Newest entries kept per thread; older ones are dropped on every append.
HISTORY_LIMIT = 10

# Display width of ``text`` / ``translation`` in stored entries.
DISPLAY_LIMIT = 100
ELLIPSIS = "..."


def truncate_for_display(value: str, limit: int = DISPLAY_LIMIT) -> str:
    """Cut ``value`` to ``limit`` characters plus ``"..."`` if it is longer."""
    if len(value) <= limit:
        return value
    return value[:limit] + ELLIPSIS


def count_words(value: str) -> int:
    """Count whitespace-delimited non-empty tokens."""
    return len(value.split())


def build_entry(
    text: str,
    to_language: Language,
    translation: str,
    *,
    now: datetime | None = None,
) -> HistoryEntry:
    """Build a display-ready entry from a completed translation.

    ``word_count`` is taken from the full translation before truncation.
    """
    return HistoryEntry(
        text=truncate_for_display(text),
        to_language=to_language,
        translation=truncate_for_display(translation),
        word_count=count_words(translation),
        timestamp=now or datetime.now(UTC),
    )


def _serialize(entries: list[HistoryEntry]) -> list[dict]:
    return [entry.model_dump(mode="json", by_alias=True) for entry in entries]


class HistoryManager:
    """Reads and writes a thread's history slot through a ``StateStore``."""

    def __init__(self, store: StateStore, *, max_attempts: int = 5) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_attempts

    async def read(self, thread_id: str) -> list[HistoryEntry]:
        """Return the thread's history, newest first (empty if never written)."""
        return self._deserialize(thread_id, await self._store.get(thread_id, HISTORY_KEY))

    async def append(self, thread_id: str, entry: HistoryEntry) -> list[HistoryEntry]:
        """Prepend ``entry``, trim to ``HISTORY_LIMIT``, persist, and return the result.

        Raises:
            HistoryConflictError: Every compare-and-set attempt lost a race.
            StateStoreError: The store failed (propagated).
        """
        for attempt in range(1, self._max_attempts + 1):
            raw = await self._store.get(thread_id, HISTORY_KEY)
            updated = [entry, *self._deserialize(thread_id, raw)][:HISTORY_LIMIT]

            if await self._store.compare_and_set(thread_id, HISTORY_KEY, raw, _serialize(updated)):
                await self._store.set(thread_id, COUNT_KEY, len(updated))
                return updated

            logger.debug(
                "History append lost a race (thread=%s, attempt=%d/%d)",
                thread_id,
                attempt,
                self._max_attempts,
            )

        logger.warning(
            "History append gave up after %d attempts (thread=%s)",
            self._max_attempts,
            thread_id,
        )
        raise HistoryConflictError(
            f"History for thread {thread_id!r} changed concurrently; append abandoned "
            f"after {self._max_attempts} attempts"
        )

    async def clear(self, thread_id: str) -> None:
        """Replace the thread's history with an empty list."""
        await self._store.set(thread_id, HISTORY_KEY, [])
        await self._store.set(thread_id, COUNT_KEY, 0)

    @staticmethod
    def _deserialize(thread_id: str, raw) -> list[HistoryEntry]:
        if raw is None:
            return []
        try:
            return [HistoryEntry.model_validate(item) for item in raw]
        except (TypeError, ValidationError) as exc:
            raise StateReadError(
                context=StateOperationContext(
                    "history.read", thread_id, HISTORY_KEY, details="corrupt stored history"
                ),
                cause=exc,
            ) from exc
