"""Runs every configured check against a handled request.

``EvalRunner.run`` is scheduled after the HTTP response has been produced
(``BackgroundTasks`` in ``threadlingo.api.routes.translate``), so nothing
here can delay or change what the caller received.

Isolation
---------
Checks run concurrently with ``asyncio.gather(..., return_exceptions=True)``.
A check that raises is recorded as a failed ``EvalResult`` carrying the
error text; the other checks finish normally and their verdicts are
reported unchanged.

Reporting
---------
Each verdict is handed to a sink.  The default sink writes one log line per
check to the ``threadlingo.evals`` logger.  A sink that raises is logged
and otherwise ignored, the same way an audit write failure never breaks
the interaction it records.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from threadlingo.evals.base import Check, EvalInput, EvalResult
from threadlingo.evals.correct_language import CorrectLanguageCheck
from threadlingo.evals.politeness import LLMPolitenessScorer, politeness_check
from threadlingo.translation.models import TranslationResponse
from threadlingo.translation.renderer import ChatRenderer

logger = logging.getLogger("threadlingo.evals")

EvalSink = Callable[[str, EvalResult, TranslationResponse], None]


def log_sink(name: str, result: EvalResult, output: TranslationResponse) -> None:
    """Default sink: one log line per verdict."""
    level = logging.INFO if result.passed else logging.WARNING
    logger.log(
        level,
        "Eval %s %s (thread=%s, metadata=%s)",
        name,
        "passed" if result.passed else "failed",
        output.thread_id,
        result.metadata,
    )


class EvalRunner:
    """Invokes a set of checks and forwards their verdicts to a sink."""

    def __init__(self, checks: Sequence[Check], *, sink: EvalSink = log_sink) -> None:
        names = [check.name for check in checks]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate check names: {names}")
        self._checks = list(checks)
        self._sink = sink

    @property
    def check_names(self) -> list[str]:
        return [check.name for check in self._checks]

    async def run(
        self, eval_input: EvalInput, output: TranslationResponse
    ) -> dict[str, EvalResult]:
        """Run all checks; return verdicts keyed by check name.

        Requests that produced no translation (clear, peek) are skipped and
        return an empty dict.
        """
        if not output.translation:
            return {}

        outcomes = await asyncio.gather(
            *(check.evaluate(eval_input, output) for check in self._checks),
            return_exceptions=True,
        )

        results: dict[str, EvalResult] = {}
        for check, outcome in zip(self._checks, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    "Eval %s raised (thread=%s)",
                    check.name,
                    output.thread_id,
                    exc_info=outcome,
                )
                outcome = EvalResult(
                    passed=False,
                    metadata={"error": f"{type(outcome).__name__}: {outcome}"},
                )
            results[check.name] = outcome
            self._report(check.name, outcome, output)
        return results

    def _report(self, name: str, result: EvalResult, output: TranslationResponse) -> None:
        try:
            self._sink(name, result, output)
        except Exception:
            logger.warning("Eval sink failed for %s; verdict not recorded.", name, exc_info=True)


def build_default_runner(
    renderer: ChatRenderer, settings, *, sink: EvalSink = log_sink
) -> EvalRunner:
    """Assemble the ``politeness`` and ``correct-language`` checks.

    Args:
        renderer: Model client used by both checks.
        settings: ``EvalSettings`` from ``threadlingo.config``.
        sink: Where verdicts are reported.
    """
    return EvalRunner(
        [
            politeness_check(
                LLMPolitenessScorer(renderer), threshold=settings.politeness_threshold
            ),
            CorrectLanguageCheck(renderer),
        ],
        sink=sink,
    )
