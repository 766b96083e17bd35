"""LLM client — rewrites a canonical NPC line in the NPC's own voice.

The presentation coordinator takes any object matching the protocol:

    async def generate_reply(self, prior_choice_text: str, canonical_line: str) -> str: ...

Two implementations are provided:

    HttpReplyGenerator  — real HTTP client for an OpenAI-compatible
                          chat-completions endpoint.
    CanonReplyGenerator — returns the canonical line unchanged. Useful for
                          smoke-testing the wiring without a model or key.

Each call makes exactly one attempt. There is no retry here: the caller
falls back to the canonical line instead.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from npc_dialogue.config import DEFAULT_ENDPOINT, DEFAULT_MODEL, AugmentationSettings
from npc_dialogue.prompts import build_messages

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every generator must match this signature
# ---------------------------------------------------------------------------

class ReplyGenerator(Protocol):
    async def generate_reply(self, prior_choice_text: str, canonical_line: str) -> str: ...


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AugmentationError(RuntimeError):
    """Base class for every failure of a rewrite request."""


class ConfigurationError(AugmentationError):
    """No credential configured. Raised before any network activity."""


class TransportError(AugmentationError):
    """Timeout, connection failure, or a non-success HTTP status."""


class ProtocolError(AugmentationError):
    """The response body does not have the expected shape."""


# ---------------------------------------------------------------------------
# HttpReplyGenerator — connects to a real backend
# ---------------------------------------------------------------------------

class HttpReplyGenerator:
    """Async client for an OpenAI-compatible chat-completions endpoint.

    Request:  POST {endpoint}
              {"model": ..., "temperature": ..., "max_tokens": ...,
               "messages": [{"role": "system", ...}, {"role": "user", ...}]}
    Response: {"choices": [{"message": {"content": "..."}}]}

    Args:
        api_key:     Bearer token. Required; an empty key fails every call
                     with ConfigurationError.
        model:       Model identifier.
        endpoint:    Full URL of the chat-completions route.
        temperature: Sampling temperature.
        max_tokens:  Maximum length of the reply.
        timeout:     HTTP timeout in seconds for the whole call.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        temperature: float = 0.7,
        max_tokens: int = 120,
        timeout: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._endpoint = endpoint
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: AugmentationSettings) -> HttpReplyGenerator:
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            endpoint=settings.endpoint,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _build_body(self, prior_choice_text: str, canonical_line: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "messages": build_messages(prior_choice_text, canonical_line),
        }

    def _parse_response(self, resp: httpx.Response) -> str:
        """Extract the first candidate's text from the response body."""
        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolError("Response body is not valid JSON") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ProtocolError("Response contains no choices")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ProtocolError("First choice has no message content")
        return content

    async def generate_reply(self, prior_choice_text: str, canonical_line: str) -> str:
        if not self._api_key or not self._api_key.strip():
            raise ConfigurationError("No API key configured for NPC line generation")

        body = self._build_body(prior_choice_text, canonical_line)
        logger.debug(
            "llm call url=%s model=%s line_len=%d", self._endpoint, self._model, len(canonical_line)
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._endpoint, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.ConnectError as e:
            raise TransportError(f"Cannot connect to LLM backend at {self._endpoint}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(f"LLM backend returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"LLM request failed: {e}") from e

        text = clean_reply(self._parse_response(resp))
        logger.debug("llm response len=%d", len(text))
        return text


def clean_reply(text: str) -> str:
    """Strip whitespace, then one pair of enclosing quotes."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1]
    return text


# ---------------------------------------------------------------------------
# CanonReplyGenerator — no network; returns the canonical line
# ---------------------------------------------------------------------------

class CanonReplyGenerator:
    """Returns the canonical line as-is. No network calls.

    Lets you exercise the generating/fallback path of the coordinator end
    to end without a key or a running model.
    """

    async def generate_reply(self, prior_choice_text: str, canonical_line: str) -> str:
        logger.debug("CanonReplyGenerator line_len=%d", len(canonical_line))
        return canonical_line
