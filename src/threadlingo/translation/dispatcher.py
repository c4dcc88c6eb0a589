"""Command dispatch for translate requests.

``TranslationDispatcher.handle`` chooses one of three flows:

=============  ===================  ==========================================
command        precondition         effect
=============  ===================  ==========================================
``clear``      none                 history cleared; zero-value response
``translate``  non-blank ``text``   model call, then history append
``translate``  no / blank ``text``  read-only peek at the current history
=============  ===================  ==========================================

Clear and peek never call the model.  In the translate flow the model call
and its parsing happen first; history is only appended after a real
translation exists, so a failed request leaves the thread untouched.

The dispatcher keeps no state of its own.
"""

from __future__ import annotations

import logging

from threadlingo.translation.engine import TranslationEngine
from threadlingo.translation.history import HistoryManager, build_entry, count_words
from threadlingo.translation.models import (
    Command,
    Language,
    TranslationRequest,
    TranslationResponse,
)

logger = logging.getLogger(__name__)


class TranslationDispatcher:
    """Routes a ``TranslationRequest`` to the clear, translate or peek flow."""

    def __init__(
        self,
        *,
        engine: TranslationEngine,
        history: HistoryManager,
        default_language: Language = Language.SPANISH,
    ) -> None:
        self._engine = engine
        self._history = history
        self._default_language = default_language

    @property
    def default_language(self) -> Language:
        return self._default_language

    def resolve_language(self, request: TranslationRequest) -> Language:
        """Return the request's target language, or the configured default."""
        return request.to_language or self._default_language

    async def handle(self, request: TranslationRequest, thread_id: str) -> TranslationResponse:
        """Handle one request for ``thread_id``.

        Raises:
            ProviderError, TranslationParseError: The translate flow's model
                call failed; nothing was written.
            HistoryConflictError, StateStoreError: Persisting or reading
                history failed.
        """
        if request.command is Command.CLEAR:
            await self._history.clear(thread_id)
            logger.info("History cleared (thread=%s)", thread_id)
            return TranslationResponse(thread_id=thread_id)

        text = request.text or ""
        if not text.strip():
            return await self.peek(thread_id)

        to_language = self.resolve_language(request)
        result = await self._engine.translate(text, to_language)

        entry = build_entry(text, to_language, result.translation)
        history = await self._history.append(thread_id, entry)

        return TranslationResponse(
            translation=result.translation,
            word_count=count_words(result.translation),
            tokens=result.tokens_used,
            history=history,
            thread_id=thread_id,
            translation_count=len(history),
        )

    async def peek(self, thread_id: str) -> TranslationResponse:
        """Return the current history with zero-value translation fields."""
        history = await self._history.read(thread_id)
        return TranslationResponse(
            history=history,
            thread_id=thread_id,
            translation_count=len(history),
        )
