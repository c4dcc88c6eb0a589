"""Shared types for the evaluation harness.

A check is anything with a ``name``, a ``description`` and an async
``evaluate(eval_input, output)`` returning an ``EvalResult``.  Presets such
as ``politeness`` are just pre-built instances of that interface.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from threadlingo.translation.models import Language, TranslationResponse


@dataclass(frozen=True)
class EvalInput:
    """The request side of a handled translation, as checks see it.

    Attributes:
        text:        Source text exactly as submitted.
        to_language: Target language after default resolution.
    """

    text: str
    to_language: Language


@dataclass(frozen=True)
class EvalResult:
    """Verdict of one check against one request/response pair.

    Attributes:
        passed:   Whether the check passed.
        metadata: Check-specific detail (scores, reasons, errors).
    """

    passed: bool
    metadata: dict[str, Any] = field(default_factory=dict)


class Check(Protocol):
    """Interface every eval check implements."""

    name: str
    description: str

    async def evaluate(self, eval_input: EvalInput, output: TranslationResponse) -> EvalResult: ...


@dataclass(frozen=True)
class CheckMiddleware:
    """Adapts this service's request/response shape to a generic scorer.

    Generic scorers take a plain ``request`` string and ``response`` string;
    the middleware decides how a translation maps onto those.
    """

    transform_input: Callable[[EvalInput], str]
    transform_output: Callable[[TranslationResponse], str]
