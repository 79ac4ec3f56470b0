"""LLM client infrastructure for rlm.

Provides an OpenAI-compatible HTTP client (OpenRouter by default) and
the pluggable client protocol the orchestrator depends on.
"""

from rlm.llm.client import DEFAULT_BASE_URL, OpenRouterClient
from rlm.llm.errors import (
    ApiError,
    LLMClientError,
    LLMConfigError,
    LLMConnectionError,
    MalformedResponseError,
    NoChoicesReturnedError,
)
from rlm.llm.protocols import LLMClient

__all__ = [
    "OpenRouterClient",
    "DEFAULT_BASE_URL",
    "LLMClient",
    "LLMClientError",
    "LLMConfigError",
    "LLMConnectionError",
    "ApiError",
    "MalformedResponseError",
    "NoChoicesReturnedError",
]
