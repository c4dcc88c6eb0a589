"""Failures of the conversation state store.

An unset slot is not an error: ``get`` returns ``None`` for it.  Anything
that stops the store from answering (a locked or missing SQLite file, a
corrupt stored value) raises a ``StateStoreError`` naming the operation and
the ``(thread_id, key)`` slot involved.  ``threadlingo.api.server`` turns
every such error into HTTP 503.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StateOperationContext:
    """Which store operation failed, and on which slot.

    Attributes:
        operation: Dotted operation name, e.g. ``"state.compare_and_set"``.
        thread_id: Conversation whose slot was being accessed, if any.
        key: Slot name (``"history"``, ``"count"``), if any.
        details: Extra text such as the database path.
    """

    operation: str
    thread_id: str | None = None
    key: str | None = None
    details: str | None = None

    def describe(self) -> str:
        parts = [self.operation]
        if self.thread_id is not None:
            parts.append(f"thread={self.thread_id!r}")
        if self.key is not None:
            parts.append(f"key={self.key!r}")
        if self.details:
            parts.append(self.details)
        return " ".join(parts)


class StateStoreError(RuntimeError):
    """A state store operation could not complete.

    Attributes:
        context: The failing operation and slot.
        cause: Underlying exception (``sqlite3.Error``, ``ValidationError``),
            when there was one.
    """

    def __init__(self, *, context: StateOperationContext, cause: Exception | None = None) -> None:
        super().__init__(context.describe())
        self.context = context
        self.cause = cause

    @property
    def thread_id(self) -> str | None:
        return self.context.thread_id


class StateReadError(StateStoreError):
    """A slot could not be read or its stored value could not be decoded."""


class StateWriteError(StateStoreError):
    """A slot write, compare-and-set or schema change failed."""
