"""Chat-completion client for the language-model provider.

``ChatRenderer`` is a thin async wrapper around an Ollama-compatible
``/api/chat`` endpoint.  It is the only place in the package that talks to
the model: the translation engine and the model-backed eval checks all go
through it.

Sync vs async
-------------
Requests are handled as one asyncio task each, so the renderer uses
``httpx.AsyncClient`` and suspends only while the provider is working.  A
shared client can be injected (the application does this so connections
are pooled across requests); without one, a short-lived client is opened
per call.

JSON mode
---------
``complete(..., json_mode=True)`` sets ``"format": "json"`` in the payload,
which constrains the model to emit a single JSON value.  The renderer does
not parse that JSON; callers own their response schema.

Token usage
-----------
Ollama reports ``prompt_eval_count`` and ``eval_count``.  Their sum is
exposed as ``ChatCompletion.total_tokens``; when the provider reports
neither, ``total_tokens`` is ``None`` and callers treat usage as 0.

Failure policy
--------------
There is exactly one attempt per call.  Timeouts, connection errors,
non-2xx statuses, undecodable bodies and empty content all raise
``ProviderError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from threadlingo.translation.errors import ProviderError

logger = logging.getLogger(__name__)

# Temperature used when the caller does not configure one.
_DEFAULT_TEMPERATURE = 0.2


@dataclass(frozen=True)
class ChatCompletion:
    """Result of one chat-completion call.

    Attributes:
        content:      Generated text, stripped.  Never empty.
        total_tokens: Prompt plus completion tokens, or ``None`` when the
                      provider did not report usage.
    """

    content: str
    total_tokens: int | None = None


class ChatRenderer:
    """Async client for the provider's ``/api/chat`` endpoint.

    Attributes:
        _api_endpoint:  Full ``/api/chat`` URL.
        _model:         Model tag (e.g. ``"gemma2:2b"``).
        _timeout:       HTTP request timeout in seconds.
        _temperature:   Sampling temperature.
        _keep_alive:    How long the provider keeps the model loaded.
        _client:        Optional shared ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        model: str,
        timeout_seconds: float,
        temperature: float = _DEFAULT_TEMPERATURE,
        keep_alive: str = "5m",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_endpoint = api_endpoint
        self._model = model
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._keep_alive = keep_alive
        self._client = client

    @classmethod
    def from_settings(cls, settings, *, client: httpx.AsyncClient | None = None) -> ChatRenderer:
        """Build a renderer from ``ModelSettings``."""
        return cls(
            api_endpoint=settings.api_endpoint,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
            temperature=settings.temperature,
            keep_alive=settings.keep_alive,
            client=client,
        )

    @property
    def model(self) -> str:
        return self._model

    # ── Primary call ──────────────────────────────────────────────────────────

    async def complete(self, messages: list[dict], *, json_mode: bool = False) -> ChatCompletion:
        """Send one chat request and return the generated content.

        Args:
            messages:  Ordered ``{"role", "content"}`` dicts.
            json_mode: Force the provider to answer with a JSON value.

        Returns:
            ``ChatCompletion`` with non-empty content.

        Raises:
            ProviderError: On any transport, status, decoding or
                empty-content failure.
        """
        payload = self._build_payload(messages, json_mode=json_mode)

        try:
            if self._client is not None:
                response = await self._client.post(
                    self._api_endpoint, json=payload, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._api_endpoint, json=payload)
            response.raise_for_status()
            data = response.json()

        except httpx.TimeoutException as exc:
            logger.warning(
                "ChatRenderer: request timed out after %.1fs (endpoint=%s)",
                self._timeout,
                self._api_endpoint,
            )
            raise ProviderError(f"Model request timed out after {self._timeout:.1f}s") from exc
        except httpx.ConnectError as exc:
            logger.warning("ChatRenderer: cannot connect to provider at %s", self._api_endpoint)
            raise ProviderError(
                f"Cannot connect to model provider at {self._api_endpoint}"
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("ChatRenderer: provider returned HTTP %d", status)
            raise ProviderError(
                f"Model provider returned HTTP {status}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("ChatRenderer: request failed: %s", exc)
            raise ProviderError(f"Model request failed: {exc}") from exc
        except ValueError as exc:
            logger.error("ChatRenderer: provider response body is not JSON")
            raise ProviderError("Model provider returned a non-JSON body") from exc

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Model provider returned no content")

        return ChatCompletion(content=content.strip(), total_tokens=_total_tokens(data))

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _build_payload(self, messages: list[dict], *, json_mode: bool) -> dict:
        """Construct the ``/api/chat`` request payload.

        ``stream`` is always ``False``; we want the full response in a
        single JSON object rather than a stream of chunks.
        """
        payload: dict = {
            "model": self._model,
            "stream": False,
            "messages": messages,
            "options": {"temperature": self._temperature},
            "keep_alive": self._keep_alive,
        }
        if json_mode:
            payload["format"] = "json"
        return payload


def _total_tokens(data: dict) -> int | None:
    """Sum the provider's prompt and completion counts, if any were reported."""
    counts = [data.get("prompt_eval_count"), data.get("eval_count")]
    reported = [int(c) for c in counts if isinstance(c, int) and not isinstance(c, bool)]
    if not reported:
        return None
    return sum(reported)
