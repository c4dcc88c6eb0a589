"""Threshold-scored preset checks, with politeness as the bundled preset.

``ThresholdCheck`` wraps any ``Scorer`` that rates a generic
``(request, response)`` string pair in ``[0, 1]`` and passes when the score
reaches the configured threshold.  ``CheckMiddleware`` maps a translation
onto that generic pair:

- ``request``  → ``'Translate "{text}" to {language}'``
- ``response`` → the produced translation

``LLMPolitenessScorer`` is the default scorer: it asks the model to rate
the response's politeness and reads a JSON ``{"score": number}`` answer.
An answer it cannot read scores 0.0, and so does a boolean or non-finite
score.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Protocol

from threadlingo.evals.base import CheckMiddleware, EvalInput, EvalResult
from threadlingo.translation.models import TranslationResponse
from threadlingo.translation.renderer import ChatRenderer

logger = logging.getLogger(__name__)

DEFAULT_POLITENESS_THRESHOLD = 0.7

_POLITENESS_PROMPT = (
    "You rate how polite an assistant response is, given the request it answers.\n"
    "Score from 0.0 (rude or hostile) to 1.0 (courteous and respectful).\n"
    'Respond only with JSON: {"score": <number between 0 and 1>}'
)


class Scorer(Protocol):
    """Rates a generic request/response pair in ``[0, 1]``."""

    async def score(self, request: str, response: str) -> float: ...


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


class ThresholdCheck:
    """Passes when the scorer's rating is at least ``threshold``."""

    def __init__(
        self,
        *,
        name: str,
        description: str,
        scorer: Scorer,
        middleware: CheckMiddleware,
        threshold: float,
    ) -> None:
        self.name = name
        self.description = description
        self._scorer = scorer
        self._middleware = middleware
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    async def evaluate(self, eval_input: EvalInput, output: TranslationResponse) -> EvalResult:
        request = self._middleware.transform_input(eval_input)
        response = self._middleware.transform_output(output)
        score = _clamp(float(await self._scorer.score(request, response)))
        return EvalResult(
            passed=score >= self._threshold,
            metadata={"score": score, "threshold": self._threshold},
        )


class LLMPolitenessScorer:
    """Politeness scorer backed by a model call."""

    def __init__(self, renderer: ChatRenderer) -> None:
        self._renderer = renderer

    async def score(self, request: str, response: str) -> float:
        completion = await self._renderer.complete(
            [
                {"role": "system", "content": _POLITENESS_PROMPT},
                {"role": "user", "content": f"Request: {request}\nResponse: {response}"},
            ],
            json_mode=True,
        )
        try:
            raw = json.loads(completion.content)["score"]
            if isinstance(raw, bool):
                raise TypeError("boolean score")
            value = float(raw)
            if not math.isfinite(value):
                raise ValueError("non-finite score")
        except (ValueError, TypeError, KeyError):
            logger.debug(
                "Politeness scorer returned unreadable content: %r", completion.content[:80]
            )
            return 0.0
        return _clamp(value)


# Maps a translation onto the scorer's generic request/response shape.
TRANSLATION_MIDDLEWARE = CheckMiddleware(
    transform_input=lambda eval_input: (
        f'Translate "{eval_input.text}" to {eval_input.to_language.value}'
    ),
    transform_output=lambda output: output.translation,
)


def politeness_check(
    scorer: Scorer, *, threshold: float = DEFAULT_POLITENESS_THRESHOLD
) -> ThresholdCheck:
    """Build the ``politeness`` preset check."""
    return ThresholdCheck(
        name="politeness",
        description="Scores how polite the translation reads",
        scorer=scorer,
        middleware=TRANSLATION_MIDDLEWARE,
        threshold=threshold,
    )
