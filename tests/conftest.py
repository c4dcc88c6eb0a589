"""
Shared pytest fixtures for the threadlingo test suite.

This module provides fixtures that are automatically available to all test files:
- In-memory and temporary SQLite state stores
- A scripted model client (``FakeRenderer``)
- History manager, engine and dispatcher wired to those doubles
- FastAPI TestClient instances built with ``create_app``

Every fixture is function-scoped so no state leaks between tests.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeRenderer
from threadlingo.api.server import create_app
from threadlingo.config import ServerConfig, use_test_state_path
from threadlingo.state.sqlite import SqliteStateStore
from threadlingo.state.store import InMemoryStateStore
from threadlingo.translation.dispatcher import TranslationDispatcher
from threadlingo.translation.engine import TranslationEngine
from threadlingo.translation.history import HistoryManager

# ============================================================================
# STATE FIXTURES
# ============================================================================


@pytest.fixture
def store() -> InMemoryStateStore:
    """Fresh in-memory state store."""
    return InMemoryStateStore()


@pytest.fixture
def temp_state_path(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Point ``config.state.path`` at a temporary SQLite file.

    Uses the config system's ``use_test_state_path`` helper so code that
    reads the configured path sees the temporary one.
    """
    with use_test_state_path(tmp_path / "state" / "test_threadlingo.db") as path:
        yield path


@pytest.fixture
def sqlite_store(temp_state_path: Path) -> SqliteStateStore:
    """SQLite state store with its schema created."""
    sqlite = SqliteStateStore(temp_state_path)
    sqlite.init_schema()
    return sqlite


# ============================================================================
# TRANSLATION FIXTURES
# ============================================================================


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    """Scripted model client with no queued replies."""
    return FakeRenderer()


@pytest.fixture
def history(store: InMemoryStateStore) -> HistoryManager:
    return HistoryManager(store)


@pytest.fixture
def dispatcher(fake_renderer: FakeRenderer, history: HistoryManager) -> TranslationDispatcher:
    return TranslationDispatcher(engine=TranslationEngine(fake_renderer), history=history)


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def test_config() -> ServerConfig:
    """Built-in defaults with evals off; tests opt in to evals explicitly."""
    cfg = ServerConfig()
    cfg.evals.enabled = False
    return cfg


@pytest.fixture
def test_client(
    test_config: ServerConfig, store: InMemoryStateStore, fake_renderer: FakeRenderer
) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient for an app wired to the in-memory store and the
    scripted renderer.
    """
    app = create_app(test_config, store=store, renderer=fake_renderer)
    with TestClient(app) as client:
        yield client
