"""
Pydantic models for the translate request/response contract.

These models are shared by the HTTP layer and the command dispatcher.  Wire
names are camelCase (``toLanguage``, ``wordCount``, ``threadId``) to match
the browser client; Python attributes are snake_case.  Every model accepts
either spelling on input.

Validation happens before the dispatcher runs: an unknown ``toLanguage`` or
``command`` value, or a non-string ``text``, is rejected by FastAPI with a
422 and never reaches the translation flow.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Language(str, Enum):
    """Target languages supported by the translate flow."""

    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    CHINESE = "Chinese"


class Command(str, Enum):
    """Request intent.  ``translate`` is the default."""

    TRANSLATE = "translate"
    CLEAR = "clear"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# HISTORY
# ============================================================================


class HistoryEntry(_WireModel):
    """
    One recorded past translation.

    ``text`` and ``translation`` are stored display-truncated (see
    ``threadlingo.translation.history.truncate_for_display``);
    ``word_count`` is always computed from the full translation.

    Attributes:
        text: Source text, truncated for display.
        to_language: Target language of the translation.
        translation: Translated text, truncated for display.
        word_count: Whitespace-delimited token count of the full translation.
        timestamp: UTC instant the translation completed.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    text: str
    to_language: Language
    translation: str
    word_count: int = Field(ge=0)
    timestamp: datetime


# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class TranslationRequest(_WireModel):
    """
    Translate-endpoint request body.

    Attributes:
        text: Source text.  Absent or blank means "peek": return the current
            history without calling the model.
        to_language: Target language.  ``None`` resolves to the configured
            default language.
        command: ``translate`` (default) or ``clear``.
    """

    text: str | None = None
    to_language: Language | None = None
    command: Command = Command.TRANSLATE


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class TranslationResponse(_WireModel):
    """
    Translate-endpoint response body.

    Attributes:
        translation: Translated text; empty for clear and peek requests.
        word_count: Word count of ``translation``.
        tokens: Provider-reported token usage; 0 when not reported or when no
            model call was made.
        history: Current history, newest first, at most 10 entries.
        thread_id: Conversation the request was handled for.
        translation_count: ``len(history)`` after the operation.
    """

    translation: str = ""
    word_count: int = 0
    tokens: int = 0
    history: list[HistoryEntry] = Field(default_factory=list)
    thread_id: str
    translation_count: int = 0
