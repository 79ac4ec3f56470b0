"""Wire-level data model for rlm.

Frozen dataclasses for the messages exchanged with an OpenAI-compatible
chat-completion API (Message, ToolCall, FunctionCall) and the request
envelope rebuilt on every round-trip.

No I/O in this module -- pure data and (de)serialization.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, TypedDict

if TYPE_CHECKING:
    from rlm.toolkit.models import ToolDefinition
    from rlm.transcript import Transcript

Role = Literal["user", "system", "assistant", "tool"]

_ROLES: frozenset[str] = frozenset({"user", "system", "assistant", "tool"})


class _FunctionCallDict(TypedDict):
    """OpenAI function sub-object."""

    name: str
    arguments: str


class ToolCallOpenAIDict(TypedDict):
    """OpenAI wire format for a single tool call."""

    id: str
    type: str
    function: _FunctionCallDict


@dataclass(frozen=True)
class FunctionCall:
    """The function half of a tool call.

    ``arguments`` is the raw JSON text sent by the model. It is handed to
    the tool verbatim and never parsed here.
    """

    name: str
    arguments: str

    @classmethod
    def from_openai(cls, fn: dict) -> FunctionCall:
        raw_args = fn.get("arguments", "")
        if not isinstance(raw_args, str):
            # Some providers send an already-decoded object
            raw_args = _json.dumps(raw_args)
        return cls(name=fn["name"], arguments=raw_args)


@dataclass(frozen=True)
class ToolCall:
    """A tool/function invocation requested by the model."""

    id: str
    function: FunctionCall
    type: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def arguments(self) -> str:
        return self.function.arguments

    @property
    def is_function(self) -> bool:
        return self.type == "function"

    @classmethod
    def from_openai(cls, tc: dict) -> ToolCall:
        """Parse from OpenAI/compatible format."""
        return cls(
            id=tc["id"],
            type=tc.get("type", "function"),
            function=FunctionCall.from_openai(tc["function"]),
        )

    def to_openai(self) -> ToolCallOpenAIDict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }


@dataclass(frozen=True)
class Message:
    """A single message in the transcript.

    ``content`` may be None only for assistant replies, normally those
    that carry tool calls. Messages built from local input always carry
    content. An assistant reply with neither is accepted here and
    rejected by the orchestrator.
    """

    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None

    def __post_init__(self) -> None:
        if self.content is None and self.role != "assistant":
            raise ValueError(f"{self.role} message must carry content")

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    @property
    def content_length(self) -> int:
        """Character count of the content, 0 when absent."""
        return len(self.content) if self.content is not None else 0

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @classmethod
    def from_openai(cls, msg: dict) -> Message:
        """Parse a message dict as found in ``choices[n].message``.

        Raises:
            KeyError, TypeError, ValueError: If the dict does not have the
                expected shape. Callers translate these into their own
                error types.
        """
        role = msg["role"]
        if role not in _ROLES:
            raise ValueError(f"Unknown message role: {role!r}")
        content = msg.get("content")
        if content is not None and not isinstance(content, str):
            raise TypeError(f"Message content must be a string, got {type(content).__name__}")
        raw_calls = msg.get("tool_calls")
        tool_calls = (
            tuple(ToolCall.from_openai(tc) for tc in raw_calls)
            if raw_calls is not None
            else None
        )
        return cls(
            role=role,
            content=content,
            tool_calls=tool_calls,
            tool_call_id=msg.get("tool_call_id"),
        )

    def to_openai(self) -> dict:
        """Serialize to OpenAI wire format.

        ``content`` is always present (``null`` when absent); ``tool_calls``
        and ``tool_call_id`` only when set.
        """
        d: dict = {"role": self.role, "content": self.content}
        if self.tool_calls is not None:
            d["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            d["tool_call_id"] = self.tool_call_id
        return d


@dataclass(frozen=True)
class RequestEnvelope:
    """The payload sent on one round-trip.

    Holds a reference to the live transcript rather than a copy, so an
    envelope must be serialized before the transcript grows again.
    """

    model: str
    messages: Transcript
    tools: list[ToolDefinition] | None = None

    def to_payload(self) -> dict:
        """Build the JSON body ``{model, messages, tools?}``."""
        payload: dict = {
            "model": self.model,
            "messages": self.messages.to_openai(),
        }
        if self.tools:
            payload["tools"] = [tool.to_openai() for tool in self.tools]
        return payload
