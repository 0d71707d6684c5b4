"""
Chat model client with OpenAI- and Anthropic-shaped requests.

The conversation core only ever calls ``complete(messages)``. Provider
differences live in two pure functions, ``to_wire_format`` and
``from_wire_response``, so they can be tested without a network.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

import anthropic
import openai

from .config import ModelConfig
from .history import Message

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Model call failed: non-success HTTP status, transport error or malformed reply."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class WireFormat(Enum):
    """Request/response layout."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def resolve_wire_format(model: str, provider: str | None = None) -> WireFormat:
    """Pick the wire format from an explicit provider or the model name."""
    if provider:
        return WireFormat(provider.lower())
    if model.startswith("claude"):
        return WireFormat.ANTHROPIC
    return WireFormat.OPENAI


def _uses_completion_tokens(model: str) -> bool:
    # GPT-5 and reasoning models take max_completion_tokens instead of max_tokens
    return model.startswith(("gpt-5", "o1", "o3", "o4"))


def to_wire_format(
    messages: Sequence[Message],
    wire_format: WireFormat,
    *,
    model: str,
    max_tokens: int,
    temperature: float,
) -> dict[str, Any]:
    """
    Shape a message sequence into a request payload.

    OpenAI takes the flat role/content list as is. Anthropic takes system
    text as a top-level field and only user/assistant turns in ``messages``;
    consecutive turns with the same role are merged.
    """
    if wire_format is WireFormat.OPENAI:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
        }
        token_key = "max_completion_tokens" if _uses_completion_tokens(model) else "max_tokens"
        payload[token_key] = max_tokens
        return payload

    system_parts = [m.content for m in messages if m.role == "system"]
    turns: list[dict[str, str]] = []
    for m in messages:
        if m.role == "system":
            continue
        if turns and turns[-1]["role"] == m.role:
            turns[-1] = {"role": m.role, "content": f"{turns[-1]['content']}\n\n{m.content}"}
        else:
            turns.append({"role": m.role, "content": m.content})

    payload = {
        "model": model,
        "messages": turns,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if system_parts:
        payload["system"] = "\n\n".join(system_parts)
    return payload


def from_wire_response(payload: dict[str, Any], wire_format: WireFormat) -> str:
    """
    Pull the reply text out of a response payload.

    Raises:
        ApiError: If the payload does not have the expected shape
    """
    try:
        if wire_format is WireFormat.OPENAI:
            return payload["choices"][0]["message"]["content"] or ""

        return "".join(
            block["text"] for block in payload["content"] if block.get("type") == "text"
        )
    except (KeyError, IndexError, TypeError) as e:
        raise ApiError(f"Unexpected {wire_format.value} response shape: {e}", body=str(payload)) from e


class ChatModel(Protocol):
    """Anything that can answer a message sequence with text."""

    def complete(self, messages: Sequence[Message]) -> str:
        ...


class ModelClient:
    """
    Synchronous chat client backed by the official SDKs.

    The OpenAI SDK authenticates with a bearer token, the Anthropic SDK with
    an ``x-api-key`` header. ``base_url`` points either at a compatible
    endpoint.
    """

    def __init__(self, config: ModelConfig, api_key: str):
        if not api_key:
            raise ValueError("API key required")
        self.config = config
        self.api_key = api_key
        self.wire_format = resolve_wire_format(config.model, config.provider)
        self._client: openai.OpenAI | anthropic.Anthropic | None = None

    def _get_client(self) -> openai.OpenAI | anthropic.Anthropic:
        """Get or create the SDK client."""
        if self._client is None:
            client_kwargs: dict[str, Any] = {
                "api_key": self.api_key,
                "timeout": self.config.request_timeout,
            }
            if self.config.base_url:
                client_kwargs["base_url"] = self.config.base_url

            if self.wire_format is WireFormat.ANTHROPIC:
                self._client = anthropic.Anthropic(**client_kwargs)
            else:
                self._client = openai.OpenAI(**client_kwargs)
        return self._client

    def _send(self, payload: dict[str, Any]) -> dict[str, Any]:
        client = self._get_client()
        if self.wire_format is WireFormat.ANTHROPIC:
            response = client.messages.create(**payload)
        else:
            response = client.chat.completions.create(**payload)
        return response.model_dump()

    def complete(self, messages: Sequence[Message]) -> str:
        """
        Send the messages and return the reply text.

        Raises:
            ApiError: On any transport, status or response-shape failure
        """
        payload = to_wire_format(
            messages,
            self.wire_format,
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        logger.debug(
            f"Sending {len(payload['messages'])} messages to {self.config.model} "
            f"({self.wire_format.value})"
        )

        try:
            data = self._send(payload)
        except (openai.APIStatusError, anthropic.APIStatusError) as e:
            logger.warning(f"Model API returned {e.status_code}")
            raise ApiError(
                f"API error {e.status_code}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except (openai.APIError, anthropic.APIError) as e:
            logger.warning(f"Model API call failed: {e}")
            raise ApiError(f"Error calling API: {e}") from e

        return from_wire_response(data, self.wire_format)


__all__ = [
    "ApiError",
    "ChatModel",
    "ModelClient",
    "WireFormat",
    "from_wire_response",
    "resolve_wire_format",
    "to_wire_format",
]
