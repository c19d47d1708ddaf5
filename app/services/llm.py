"""
Text-generation client for any OpenAI-compatible chat-completions API.

Two calls are used by the app:
  complete(messages, max_tokens) -> str             (scoring, one JSON reply)
  stream(messages, max_tokens)   -> Iterator[str]   (coach chat, text fragments)

Every transport, HTTP-status or payload failure is raised as
GenerationError. Nothing is retried.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Iterator, Optional

import httpx

from app.core.config import settings
from app.core.errors import GenerationError

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"
STREAM_DONE = "[DONE]"
_END_OF_STREAM = object()


class LLMClient:
    """Provider for OpenAI-style chat completions over httpx."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    def _body(self, messages: list[dict], max_tokens: int, stream: bool = False) -> dict:
        body = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if stream:
            body["stream"] = True
        return body

    def complete(self, messages: list[dict], max_tokens: int) -> str:
        """Return the full text of a single (non-streamed) completion."""
        try:
            with self._client() as client:
                response = client.post(CHAT_COMPLETIONS_PATH, json=self._body(messages, max_tokens))
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Completion timed out after %.0fs", self.timeout)
            raise GenerationError("Text generation timed out.") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Completion failed: %s", exc)
            raise GenerationError() from exc

        try:
            return _first_choice_text(data, "message")
        except ValueError as exc:
            logger.warning("Completion payload malformed: %s", exc)
            raise GenerationError() from exc

    def stream(self, messages: list[dict], max_tokens: int) -> Iterator[str]:
        """
        Yield non-empty content fragments as the provider streams them.

        Lazy: the request is only sent when the first fragment is pulled.
        """
        try:
            with self._client() as client:
                with client.stream(
                    "POST",
                    CHAT_COMPLETIONS_PATH,
                    json=self._body(messages, max_tokens, stream=True),
                ) as response:
                    response.raise_for_status()
                    for line in response.iter_lines():
                        content = _parse_stream_line(line)
                        if content is _END_OF_STREAM:
                            return
                        if content:
                            yield content
        except httpx.TimeoutException as exc:
            logger.warning("Streaming completion timed out after %.0fs", self.timeout)
            raise GenerationError("Text generation timed out.") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Streaming completion failed: %s", exc)
            raise GenerationError() from exc


def _parse_stream_line(line: str):
    """
    Decode one server-sent-event line of a chat-completions stream.

    Returns the delta text, _END_OF_STREAM for the terminal marker, or None
    for keep-alives, comments and chunks without content.
    """
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if payload == STREAM_DONE:
        return _END_OF_STREAM
    if not payload:
        return None
    return _first_choice_text(json.loads(payload), "delta") or None


def _first_choice_text(data, key: str) -> str:
    """
    Pull choices[0][key]["content"] out of a decoded payload.

    Missing choices or content give "". Anything of the wrong shape raises
    ValueError.
    """
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    choices = data.get("choices") or []
    if not isinstance(choices, list):
        raise ValueError("'choices' is not a list")
    if not choices:
        return ""
    choice = choices[0]
    if not isinstance(choice, dict):
        raise ValueError("choice is not an object")
    body = choice.get(key) or {}
    if not isinstance(body, dict):
        raise ValueError(f"{key!r} is not an object")
    content = body.get("content") or ""
    if not isinstance(content, str):
        raise ValueError("'content' is not a string")
    return content


@lru_cache
def get_llm_client() -> LLMClient:
    """FastAPI dependency; overridden with a scripted fake in tests."""
    return LLMClient(
        api_key=settings.LLM_API_KEY,
        base_url=settings.LLM_BASE_URL,
        model=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )
