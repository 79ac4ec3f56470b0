"""Completion client protocol.

Any object with complete() and close() methods matching these signatures
can drive the orchestrator. The built-in OpenRouterClient implements it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rlm.protocols import Message, RequestEnvelope


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for pluggable completion clients."""

    def complete(self, envelope: RequestEnvelope) -> Message:
        """Send one request, return the first choice's message."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
