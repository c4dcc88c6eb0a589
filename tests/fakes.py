"""
Shared test doubles.

``FakeRenderer`` stands in for ``ChatRenderer`` wherever a test needs to
script the model's answers without HTTP.  Provider-level behaviour
(payloads, status mapping) is tested against the real renderer with respx
in ``test_translation/test_renderer.py``.
"""

from __future__ import annotations

import json

from threadlingo.translation.renderer import ChatCompletion

THREAD_ID = "thread-test-1"


def translation_reply(translation: str, tokens: int | None = None) -> ChatCompletion:
    """A well-formed translation answer as the engine expects it."""
    return ChatCompletion(content=json.dumps({"translation": translation}), total_tokens=tokens)


class FakeRenderer:
    """Scripted model client.

    Each call to ``complete`` pops the next reply.  A reply may be a
    ``ChatCompletion``, a plain string (wrapped as content) or an exception
    instance (raised).  Calling with no replies left fails the test.
    """

    def __init__(self, *replies, model: str = "fake-model") -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []
        self.model = model

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    async def complete(self, messages: list[dict], *, json_mode: bool = False) -> ChatCompletion:
        self.calls.append({"messages": messages, "json_mode": json_mode})
        if not self.replies:
            raise AssertionError("FakeRenderer received an unexpected model call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return ChatCompletion(content=reply)
        return reply
