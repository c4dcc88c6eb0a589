"""Translate flow for threadlingo.

Package structure
-----------------
models.py      Language / Command enums and the pydantic request, response
               and history-entry models.
renderer.py    ChatRenderer: async httpx client for the provider's
               ``/api/chat`` endpoint.
engine.py      TranslationEngine: one structured model call per
               translation, parsed strictly.
history.py     HistoryManager: bounded newest-first history with a
               compare-and-set append.
dispatcher.py  TranslationDispatcher: clear / translate / peek routing.
errors.py      TranslationError hierarchy.

Typical call flow (inside ``POST /api/translate``)
--------------------------------------------------
1. route resolves the thread id and calls ``dispatcher.handle(request, thread_id)``
2. dispatcher picks the flow from ``request.command`` and ``request.text``
3. engine asks the renderer for a JSON ``{"translation": ...}`` answer
4. history manager prepends the new entry and trims to ten
5. route returns the response and schedules the eval runner in the background
"""

from threadlingo.translation.dispatcher import TranslationDispatcher
from threadlingo.translation.engine import TranslationEngine, TranslationResult
from threadlingo.translation.history import HistoryManager
from threadlingo.translation.models import (
    Command,
    HistoryEntry,
    Language,
    TranslationRequest,
    TranslationResponse,
)
from threadlingo.translation.renderer import ChatCompletion, ChatRenderer

__all__ = [
    "ChatCompletion",
    "ChatRenderer",
    "Command",
    "HistoryEntry",
    "HistoryManager",
    "Language",
    "TranslationDispatcher",
    "TranslationEngine",
    "TranslationRequest",
    "TranslationResponse",
    "TranslationResult",
]
