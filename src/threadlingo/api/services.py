"""Service container handed to the route factories.

Routes never build their collaborators; ``create_app`` assembles one
``Services`` instance and passes it to every ``router(services)`` factory,
so tests can substitute an in-memory store or a fake renderer.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from threadlingo.evals.runner import EvalRunner, build_default_runner
from threadlingo.state.store import StateStore, create_state_store
from threadlingo.translation.dispatcher import TranslationDispatcher
from threadlingo.translation.engine import TranslationEngine
from threadlingo.translation.history import HistoryManager
from threadlingo.translation.models import Language
from threadlingo.translation.renderer import ChatRenderer


@dataclass
class Services:
    """Collaborators shared by all requests.

    Attributes:
        store:        Conversation state store.
        renderer:     Model client.
        dispatcher:   Command dispatcher for translate requests.
        eval_runner:  Background eval runner, or ``None`` when evals are off.
        http_client:  Shared ``httpx.AsyncClient`` closed on shutdown, if the
                      services own one.
    """

    store: StateStore
    renderer: ChatRenderer
    dispatcher: TranslationDispatcher
    eval_runner: EvalRunner | None = None
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


def build_services(
    cfg,
    *,
    store: StateStore | None = None,
    renderer: ChatRenderer | None = None,
    eval_runner: EvalRunner | None = None,
) -> Services:
    """Assemble ``Services`` from a ``ServerConfig``.

    Any collaborator passed explicitly is used as-is; the rest are built
    from configuration.
    """
    http_client = None
    if renderer is None:
        http_client = httpx.AsyncClient(timeout=cfg.model.timeout_seconds)
        renderer = ChatRenderer.from_settings(cfg.model, client=http_client)
    if store is None:
        store = create_state_store(cfg.state)
    if eval_runner is None and cfg.evals.enabled:
        eval_runner = build_default_runner(renderer, cfg.evals)

    dispatcher = TranslationDispatcher(
        engine=TranslationEngine(renderer),
        history=HistoryManager(store, max_attempts=cfg.translation.append_max_attempts),
        default_language=Language(cfg.translation.default_language),
    )
    return Services(
        store=store,
        renderer=renderer,
        dispatcher=dispatcher,
        eval_runner=eval_runner,
        http_client=http_client,
    )
