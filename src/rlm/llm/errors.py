"""LLM-specific error hierarchy.

All LLM errors inherit from RlmError for consistent exception handling.
None of them are retried.
"""

from __future__ import annotations

from rlm.exceptions import ProtocolError, RlmError


class LLMClientError(RlmError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid client configuration (e.g., empty API key)."""


class LLMConnectionError(LLMClientError):
    """The request never produced an HTTP response."""


class ApiError(LLMClientError, ProtocolError):
    """The API answered with a non-success status.

    Attributes:
        status: HTTP status code.
        body: Verbatim response body, kept for diagnosis.
    """

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(
            f"API responded with status {status}; Response body was: {body}"
        )


class MalformedResponseError(LLMClientError, ProtocolError):
    """The response body is not a chat-completion envelope.

    Attributes:
        body: Verbatim response body.
    """

    def __init__(self, body: str, reason: str = "") -> None:
        self.body = body
        self.reason = reason
        msg = "Failed to parse JSON response body"
        if reason:
            msg += f" ({reason})"
        super().__init__(f"{msg}: {body}")


class NoChoicesReturnedError(LLMClientError, ProtocolError):
    """The response envelope has an empty ``choices`` list."""

    def __init__(self) -> None:
        super().__init__("No response from LLM API")
