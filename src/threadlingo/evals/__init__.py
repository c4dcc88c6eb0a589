"""Post-hoc quality checks for handled translations.

base.py              EvalInput, EvalResult, Check protocol, CheckMiddleware.
politeness.py        ThresholdCheck, LLMPolitenessScorer, politeness preset.
correct_language.py  CorrectLanguageCheck: model-judged language check.
runner.py            EvalRunner: concurrent, isolated execution and reporting.
"""

from threadlingo.evals.base import Check, CheckMiddleware, EvalInput, EvalResult
from threadlingo.evals.correct_language import CorrectLanguageCheck
from threadlingo.evals.politeness import (
    LLMPolitenessScorer,
    Scorer,
    ThresholdCheck,
    politeness_check,
)
from threadlingo.evals.runner import EvalRunner, build_default_runner, log_sink

__all__ = [
    "Check",
    "CheckMiddleware",
    "CorrectLanguageCheck",
    "EvalInput",
    "EvalResult",
    "EvalRunner",
    "LLMPolitenessScorer",
    "Scorer",
    "ThresholdCheck",
    "build_default_runner",
    "log_sink",
    "politeness_check",
]
