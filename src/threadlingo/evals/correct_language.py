"""``correct-language`` check: is the translation really in the target language?

A second, independent model call acts as judge.  It receives the
translation as the user message and must answer with
``{"correct": bool, "reason": str}``.  The check passes only when
``correct`` is literally ``true``.

This check never raises for a bad answer: an empty, non-JSON or
wrongly-shaped verdict yields ``passed=False`` with reason
``"no response"``.
"""

from __future__ import annotations

import json
import logging

from threadlingo.evals.base import EvalInput, EvalResult
from threadlingo.translation.errors import ProviderError
from threadlingo.translation.models import TranslationResponse
from threadlingo.translation.renderer import ChatRenderer

logger = logging.getLogger(__name__)

NO_RESPONSE = "no response"


def build_judge_prompt(language: str) -> str:
    return (
        f"Is this text written in {language}? Respond with JSON: "
        '{ "correct": true/false, "reason": "brief explanation" }'
    )


def parse_verdict(content: str) -> EvalResult:
    """Turn the judge's raw answer into a result, defaulting to a failure."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return EvalResult(passed=False, metadata={"reason": NO_RESPONSE})

    if not isinstance(data, dict) or not isinstance(data.get("correct"), bool):
        return EvalResult(passed=False, metadata={"reason": NO_RESPONSE})

    reason = data.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = NO_RESPONSE
    return EvalResult(passed=data["correct"], metadata={"reason": reason})


class CorrectLanguageCheck:
    """LLM-as-judge check on the translation's language."""

    name = "correct-language"
    description = "Verifies the translation is in the target language"

    def __init__(self, renderer: ChatRenderer) -> None:
        self._renderer = renderer

    async def evaluate(self, eval_input: EvalInput, output: TranslationResponse) -> EvalResult:
        try:
            completion = await self._renderer.complete(
                [
                    {"role": "system", "content": build_judge_prompt(eval_input.to_language.value)},
                    {"role": "user", "content": output.translation},
                ],
                json_mode=True,
            )
        except ProviderError as exc:
            logger.warning("correct-language judge call failed: %s", exc)
            return EvalResult(passed=False, metadata={"reason": NO_RESPONSE, "error": str(exc)})

        return parse_verdict(completion.content)
