"""Built-in OpenAI-compatible httpx client.

Provides a sync HTTP client for OpenRouter (or any OpenAI-compatible
chat completion API). One request per call, no retry: failures surface
immediately to the caller.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING

import httpx

from rlm.llm.errors import (
    ApiError,
    LLMConfigError,
    LLMConnectionError,
    MalformedResponseError,
    NoChoicesReturnedError,
)
from rlm.protocols import Message

if TYPE_CHECKING:
    from rlm.protocols import RequestEnvelope

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient:
    """Sync httpx client for OpenAI-compatible chat completions.

    Implements the LLMClient protocol.

    Usage::

        with OpenRouterClient(api_key="sk-or-...") as client:
            reply = client.complete(envelope)
            print(reply.content)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer token sent with every request.
            base_url: API base URL. Falls back to RLM_BASE_URL env var,
                then to https://openrouter.ai/api/v1.
            timeout: Request timeout in seconds. None waits indefinitely.

        Raises:
            LLMConfigError: If the API key is empty.
        """
        if not api_key:
            raise LLMConfigError("No API key provided.")
        self._base_url = (
            base_url or os.environ.get("RLM_BASE_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def complete(self, envelope: RequestEnvelope) -> Message:
        """Send one chat completion request.

        Args:
            envelope: Model, transcript and optional tool list.

        Returns:
            The first choice's message, unmodified. It may carry tool calls.

        Raises:
            LLMConnectionError: If no HTTP response was received.
            ApiError: On a non-success status, with the verbatim body.
            MalformedResponseError: If the body is not a completion envelope.
            NoChoicesReturnedError: If the envelope has no choices.
        """
        payload = envelope.to_payload()
        logger.debug(
            "POST %s (model=%s, messages=%d)",
            self.endpoint,
            envelope.model,
            len(payload["messages"]),
        )
        try:
            response = self._client.post(self.endpoint, json=payload)
        except httpx.TransportError as exc:
            raise LLMConnectionError(f"Failed to send API request: {exc}") from exc

        body = response.text
        if not response.is_success:
            raise ApiError(response.status_code, body)

        return self.parse_reply(body)

    @staticmethod
    def parse_reply(body: str) -> Message:
        """Decode a response body into the first choice's message.

        Raises:
            MalformedResponseError: If the body is not a completion envelope.
            NoChoicesReturnedError: If the envelope has no choices.
        """
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(body, str(exc)) from exc

        if not isinstance(data, dict) or not isinstance(data.get("choices"), list):
            raise MalformedResponseError(body, "missing 'choices' list")
        choices = data["choices"]
        if not choices:
            raise NoChoicesReturnedError()

        try:
            return Message.from_openai(choices[0]["message"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise MalformedResponseError(body, f"{type(exc).__name__}: {exc}") from exc

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> OpenRouterClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
