"""Translate endpoints.

``POST /api/translate`` runs the dispatcher for the caller's thread and,
when a translation was produced, schedules the eval runner as a background
task.  FastAPI runs background tasks only after the response has been
sent, so evals can neither delay nor alter it.

``GET /api/translate/history`` is the read-only peek: the same response
shape with zero-value translation fields.  ``DELETE`` on the same path
clears the thread's history, exactly like ``{"command": "clear"}``.

Thread identity
---------------
The thread id comes from the ``X-Thread-Id`` header, else the
``thread_id`` cookie, else a fresh UUID.  The resolved id is echoed in the
body (``threadId``) and set as the ``thread_id`` cookie so a browser keeps
its conversation across requests.  It is also kept on ``request.state`` so
error responses built in ``threadlingo.api.server`` carry the same cookie.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Cookie, Header, Request, Response

from threadlingo.api.services import Services
from threadlingo.evals.base import EvalInput
from threadlingo.translation.models import Command, TranslationRequest, TranslationResponse

logger = logging.getLogger(__name__)

THREAD_COOKIE = "thread_id"
_MAX_THREAD_ID_LENGTH = 128


def resolve_thread_id(header_value: str | None, cookie_value: str | None) -> str:
    """Pick the caller's thread id, minting one when none is usable."""
    for candidate in (header_value, cookie_value):
        if candidate and candidate.strip() and len(candidate.strip()) <= _MAX_THREAD_ID_LENGTH:
            return candidate.strip()
    return uuid.uuid4().hex


def set_thread_cookie(response: Response, thread_id: str) -> None:
    response.set_cookie(THREAD_COOKIE, thread_id, httponly=True, samesite="lax")


def _bind_thread(
    request: Request, response: Response, header_value: str | None, cookie_value: str | None
) -> str:
    resolved = resolve_thread_id(header_value, cookie_value)
    request.state.thread_id = resolved
    set_thread_cookie(response, resolved)
    return resolved


def router(services: Services) -> APIRouter:
    """Build the translate router bound to the application's services."""
    api = APIRouter(prefix="/api", tags=["translate"])

    @api.post("/translate", response_model=TranslationResponse)
    async def translate(
        body: TranslationRequest,
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        x_thread_id: str | None = Header(default=None),
        thread_id: str | None = Cookie(default=None),
    ):
        """Translate, clear, or peek, depending on ``command`` and ``text``."""
        resolved = _bind_thread(request, response, x_thread_id, thread_id)

        result = await services.dispatcher.handle(body, resolved)

        if services.eval_runner is not None and result.translation:
            eval_input = EvalInput(
                text=body.text or "",
                to_language=services.dispatcher.resolve_language(body),
            )
            background_tasks.add_task(services.eval_runner.run, eval_input, result)

        return result

    @api.get("/translate/history", response_model=TranslationResponse)
    async def history(
        request: Request,
        response: Response,
        x_thread_id: str | None = Header(default=None),
        thread_id: str | None = Cookie(default=None),
    ):
        """Return the caller's current history without translating."""
        resolved = _bind_thread(request, response, x_thread_id, thread_id)
        return await services.dispatcher.peek(resolved)

    @api.delete("/translate/history", response_model=TranslationResponse)
    async def clear_history(
        request: Request,
        response: Response,
        x_thread_id: str | None = Header(default=None),
        thread_id: str | None = Cookie(default=None),
    ):
        """Clear the caller's history; same result as the ``clear`` command."""
        resolved = _bind_thread(request, response, x_thread_id, thread_id)
        return await services.dispatcher.handle(
            TranslationRequest(command=Command.CLEAR), resolved
        )

    return api
