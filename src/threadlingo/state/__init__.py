"""Conversation state storage.

store.py    StateStore protocol, InMemoryStateStore, create_state_store.
sqlite.py   SqliteStateStore, a durable store with an atomic compare-and-set.
errors.py   Typed StateStoreError hierarchy.
"""

from threadlingo.state.errors import (
    StateOperationContext,
    StateReadError,
    StateStoreError,
    StateWriteError,
)
from threadlingo.state.store import InMemoryStateStore, StateStore, create_state_store

__all__ = [
    "InMemoryStateStore",
    "StateOperationContext",
    "StateReadError",
    "StateStore",
    "StateStoreError",
    "StateWriteError",
    "create_state_store",
]
