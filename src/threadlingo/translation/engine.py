"""Translation engine: one structured model call per translation.

``TranslationEngine.translate`` builds a system instruction that fixes the
target language and demands a ``{"translation": string}`` JSON object,
sends exactly one request through the ``ChatRenderer`` in JSON mode, and
parses the answer strictly.

Strict parsing
--------------
A response that is not JSON, is not an object, or lacks a non-blank string
``translation`` field raises ``TranslationParseError``.  There is no
fallback to an empty translation: a silently empty result would be written
into the thread's history as if it were real.

The engine keeps no state between calls.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from threadlingo.translation.errors import TranslationParseError
from threadlingo.translation.models import Language
from threadlingo.translation.renderer import ChatRenderer

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional translator. Translate the user's message into {language}.\n"
    "Preserve meaning, tone and formatting. Do not add explanations or notes.\n"
    'Respond only with a JSON object of the form {{"translation": "<the {language} text>"}}.'
)


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of a successful translation.

    Attributes:
        translation: Full translated text.
        tokens_used: Provider-reported token usage, 0 when not reported.
    """

    translation: str
    tokens_used: int


def build_system_prompt(to_language: Language) -> str:
    """Return the system instruction that pins the output language and shape."""
    return _SYSTEM_PROMPT_TEMPLATE.format(language=to_language.value)


def parse_translation(content: str) -> str:
    """Extract the ``translation`` field from a model JSON answer.

    Raises:
        TranslationParseError: If ``content`` is not a JSON object carrying a
            non-blank string ``translation``.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise TranslationParseError(
            "Model response is not valid JSON", raw_content=content
        ) from exc

    if not isinstance(data, dict):
        raise TranslationParseError("Model response is not a JSON object", raw_content=content)

    translation = data.get("translation")
    if not isinstance(translation, str) or not translation.strip():
        raise TranslationParseError(
            'Model response has no "translation" string', raw_content=content
        )
    return translation.strip()


class TranslationEngine:
    """Wraps the single model call that produces a translation."""

    def __init__(self, renderer: ChatRenderer) -> None:
        self._renderer = renderer

    async def translate(self, text: str, to_language: Language) -> TranslationResult:
        """Translate ``text`` into ``to_language``.

        Raises:
            ProviderError: The provider call failed (propagated from the
                renderer).
            TranslationParseError: The provider answered with unusable JSON.
        """
        logger.info(
            "Translation requested (to_language=%s, text_length=%d)",
            to_language.value,
            len(text),
        )

        completion = await self._renderer.complete(
            [
                {"role": "system", "content": build_system_prompt(to_language)},
                {"role": "user", "content": text},
            ],
            json_mode=True,
        )

        try:
            translation = parse_translation(completion.content)
        except TranslationParseError:
            logger.warning(
                "Translation response rejected (to_language=%s, content=%r)",
                to_language.value,
                completion.content[:80],
            )
            raise

        tokens = completion.total_tokens or 0
        logger.info("Translation completed (to_language=%s, tokens=%d)", to_language.value, tokens)
        return TranslationResult(translation=translation, tokens_used=tokens)
