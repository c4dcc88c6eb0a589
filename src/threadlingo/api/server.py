"""
FastAPI backend server for threadlingo.

This module builds and configures the FastAPI application:
- Logging, from the ``[logging]`` config section
- CORS middleware for the browser client
- The shared services (state store, model client, dispatcher, eval runner)
- Exception handlers mapping translate-flow failures to HTTP statuses
- All API routes

``create_app`` is the factory used by tests; the module-level ``app`` is
what ``uvicorn threadlingo.api.server:app`` and ``threadlingo run`` serve.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from threadlingo import __version__
from threadlingo.api.routes import register_routes
from threadlingo.api.routes.translate import set_thread_cookie
from threadlingo.api.services import Services, build_services
from threadlingo.evals.runner import EvalRunner
from threadlingo.state.errors import StateStoreError
from threadlingo.state.store import StateStore
from threadlingo.translation.errors import (
    HistoryConflictError,
    ProviderError,
    TranslationParseError,
)
from threadlingo.translation.renderer import ChatRenderer

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


def configure_logging(settings) -> None:
    """Apply the configured level and format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, settings.level, logging.INFO),
        format=_LOG_FORMATS.get(settings.format, _LOG_FORMATS["detailed"]),
    )


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    """Build an error body, keeping the thread cookie the route already resolved."""
    response = JSONResponse(status_code=status_code, content={"detail": detail})
    thread_id = getattr(request.state, "thread_id", None)
    if thread_id is not None:
        set_thread_cookie(response, thread_id)
    return response


def _register_exception_handlers(app: FastAPI) -> None:
    """Map translate-flow failures to deterministic HTTP responses."""

    @app.exception_handler(ProviderError)
    async def _provider_error(request: Request, exc: ProviderError):
        logger.error("Translation failed at the model provider: %s", exc)
        return _error_response(request, 502, str(exc))

    @app.exception_handler(TranslationParseError)
    async def _parse_error(request: Request, exc: TranslationParseError):
        logger.error("Translation failed: %s", exc)
        return _error_response(request, 502, str(exc))

    @app.exception_handler(HistoryConflictError)
    async def _conflict_error(request: Request, exc: HistoryConflictError):
        return _error_response(request, 409, str(exc))

    @app.exception_handler(StateStoreError)
    async def _state_error(request: Request, exc: StateStoreError):
        logger.error("State store failure: %s", exc, exc_info=exc.cause)
        return _error_response(request, 503, "State store unavailable")


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(
    cfg=None,
    *,
    store: StateStore | None = None,
    renderer: ChatRenderer | None = None,
    eval_runner: EvalRunner | None = None,
) -> FastAPI:
    """Build a configured FastAPI application.

    Args:
        cfg: ``ServerConfig``; defaults to the module-level singleton.
        store: State store override (tests pass an ``InMemoryStateStore``).
        renderer: Model client override.
        eval_runner: Eval runner override.

    Returns:
        The application, with its ``Services`` on ``app.state.services``.
    """
    if cfg is None:
        from threadlingo.config import config as cfg

    services: Services = build_services(
        cfg, store=store, renderer=renderer, eval_runner=eval_runner
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await services.aclose()

    docs = cfg.docs_should_be_enabled
    app = FastAPI(
        title="Threadlingo",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )
    app.state.services = services

    # Add CORS (Cross-Origin Resource Sharing) middleware so the browser
    # client, served from a different origin, can call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.security.cors_origins,
        allow_credentials=cfg.security.cors_allow_credentials,
        allow_methods=cfg.security.cors_allow_methods,
        allow_headers=cfg.security.cors_allow_headers,
    )

    _register_exception_handlers(app)
    register_routes(app, services)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Configure logging and serve the module-level app with uvicorn."""
    import uvicorn

    from threadlingo.config import config

    configure_logging(config.logging)
    uvicorn.run(
        "threadlingo.api.server:app",
        host=host or config.server.host,
        port=port or config.server.port,
    )


# ============================================================================
# MODULE-LEVEL APPLICATION
# ============================================================================

app = create_app()
