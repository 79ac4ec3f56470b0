"""Orchestrator step and result models.

A step of the loop yields either Continue (another round-trip is
needed) or Finished (the model produced its final answer). Errors are
raised, not returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from rlm.protocols import Message, RequestEnvelope, ToolCall


@dataclass(frozen=True)
class Continue:
    """Send ``envelope`` next."""

    envelope: RequestEnvelope


@dataclass(frozen=True)
class Finished:
    """The exchange is complete; ``content`` is the program's output."""

    content: str


Step = Union[Continue, Finished]


@dataclass(frozen=True)
class ToolStep:
    """Record of one dispatched tool call.

    Frozen: step records are immutable.
    """

    round: int
    tool_call: ToolCall
    output: str


@dataclass(frozen=True)
class OrchestratorResult:
    """Final result of an orchestrator run.

    Attributes:
        content: The final reply content.
        messages: Snapshot of the transcript at completion.
        rounds: Number of round-trips made to the API.
        tool_steps: Every tool call dispatched, in order.
    """

    content: str
    messages: tuple[Message, ...] = ()
    rounds: int = 0
    tool_steps: list[ToolStep] = field(default_factory=list)

    @property
    def total_tool_calls(self) -> int:
        return len(self.tool_steps)
