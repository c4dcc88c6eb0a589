"""Exceptions raised by the translate flow.

All of them are fatal for the current request and abort it before any
history mutation happens.  The HTTP layer maps them to status codes in
``threadlingo.api.server``.
"""

from __future__ import annotations


class TranslationError(Exception):
    """Base class for translate-flow failures."""


class ProviderError(TranslationError):
    """The model provider call failed, timed out, or returned no content.

    Attributes:
        status_code: HTTP status returned by the provider, when there was one.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TranslationParseError(TranslationError):
    """The model answered, but not with a usable ``{"translation": ...}`` object.

    Attributes:
        raw_content: The content that failed to parse, kept for logging.
    """

    def __init__(self, message: str, *, raw_content: str = "") -> None:
        super().__init__(message)
        self.raw_content = raw_content


class HistoryConflictError(TranslationError):
    """A history append kept losing compare-and-set races and gave up."""
