"""Conversation-scoped key/value state store.

Every conversation thread owns a handful of named slots (``history`` and
``count`` in practice).  The translation flow never keeps conversation data
in process globals; it receives a ``StateStore`` and talks to it through
three coroutines:

- ``get(thread_id, key)``  → stored value, or ``None`` when unset.
- ``set(thread_id, key, value)``  → unconditional overwrite.
- ``compare_and_set(thread_id, key, expected, new)``  → atomic swap that
  only succeeds when the slot still holds ``expected``.

Values are JSON-compatible data (dicts, lists, strings, numbers, booleans,
``None``).  Stores hand out copies, so callers can never mutate stored
state by accident.

Compare-and-swap
----------------
``compare_and_set`` is what makes history appends safe under concurrent
writers: the history manager reads a slot, computes the new value, and
swaps it in only if nobody else wrote in between, retrying otherwise.  Both
bundled stores implement it atomically.  A store that can only offer plain
``get``/``set`` can still satisfy the protocol with a non-atomic
read-then-write, but then concurrent appends to the same thread may lose
updates; that race is the caller's to accept.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Async key/value accessor scoped by conversation thread id."""

    async def get(self, thread_id: str, key: str) -> Any | None: ...

    async def set(self, thread_id: str, key: str, value: Any) -> None: ...

    async def compare_and_set(
        self, thread_id: str, key: str, expected: Any | None, new: Any
    ) -> bool: ...


class InMemoryStateStore:
    """Process-local state store backed by a dict.

    Suitable for tests and single-process development servers.  All
    operations are serialised by one ``asyncio.Lock``, which makes
    ``compare_and_set`` atomic within the event loop.  State is lost when
    the process exits.
    """

    def __init__(self) -> None:
        self._slots: dict[tuple[str, str], Any] = {}
        self._lock = asyncio.Lock()

    async def get(self, thread_id: str, key: str) -> Any | None:
        async with self._lock:
            return copy.deepcopy(self._slots.get((thread_id, key)))

    async def set(self, thread_id: str, key: str, value: Any) -> None:
        async with self._lock:
            self._slots[(thread_id, key)] = copy.deepcopy(value)

    async def compare_and_set(
        self, thread_id: str, key: str, expected: Any | None, new: Any
    ) -> bool:
        async with self._lock:
            current = self._slots.get((thread_id, key))
            if current != expected:
                return False
            self._slots[(thread_id, key)] = copy.deepcopy(new)
            return True

    def thread_ids(self) -> set[str]:
        """Return every thread id that owns at least one slot."""
        return {thread_id for thread_id, _ in self._slots}


def create_state_store(settings) -> StateStore:
    """Build the state store selected by ``settings.backend``.

    Args:
        settings: ``StateSettings`` from ``threadlingo.config``.

    Returns:
        An ``InMemoryStateStore`` for ``"memory"``, or a
        ``SqliteStateStore`` (schema ensured) for ``"sqlite"``.
    """
    if settings.backend == "sqlite":
        from threadlingo.state.sqlite import SqliteStateStore

        store = SqliteStateStore(settings.absolute_path)
        store.init_schema()
        logger.info("Using SQLite state store at %s", settings.absolute_path)
        return store

    logger.info("Using in-memory state store (state is not persisted across restarts)")
    return InMemoryStateStore()
