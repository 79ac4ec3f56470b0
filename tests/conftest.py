"""Shared test fixtures for rlm.

Provides a scripted completion client, reply builders, and on-disk tool
and config directories.
"""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from rlm.protocols import Message


# ------------------------------------------------------------------
# Reply builders (OpenAI wire format)
# ------------------------------------------------------------------

def text_reply(content: str | None = "Hi there") -> dict:
    """Assistant message with content and no tool calls."""
    return {"role": "assistant", "content": content}


def tool_call_dict(
    name: str,
    arguments: str = "{}",
    call_id: str = "call_1",
    kind: str = "function",
) -> dict:
    return {
        "id": call_id,
        "type": kind,
        "function": {"name": name, "arguments": arguments},
    }


def tool_reply(*calls: dict, content: str | None = None) -> dict:
    """Assistant message carrying tool calls."""
    return {"role": "assistant", "content": content, "tool_calls": list(calls)}


def completion(message: dict) -> dict:
    """Wrap a message in a realistic chat completion envelope."""
    return {
        "id": "gen-test123",
        "object": "chat.completion",
        "model": "thudm/glm-4-32b:free",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
    }


class ScriptedClient:
    """A fake LLMClient that returns canned replies in sequence.

    Records the serialized payload of every request so tests can inspect
    what was sent at each round.
    """

    def __init__(self, replies: list[dict]):
        self._replies = list(replies)
        self.payloads: list[dict] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.payloads)

    def complete(self, envelope) -> Message:
        self.payloads.append(json.loads(json.dumps(envelope.to_payload())))
        if not self._replies:
            raise AssertionError("ScriptedClient ran out of replies")
        return Message.from_openai(self._replies.pop(0))

    def close(self) -> None:
        self.closed = True


# ------------------------------------------------------------------
# Filesystem helpers
# ------------------------------------------------------------------

def write_tool(
    tool_dir: Path,
    *,
    name: str = "calc",
    script: str = 'printf "4"\n',
    definition: dict | None = None,
) -> Path:
    """Create a tool directory with definition.json and an executable exec."""
    tool_dir.mkdir(parents=True, exist_ok=True)
    if definition is None:
        definition = {
            "type": "function",
            "function": {
                "name": name,
                "description": "Evaluate an arithmetic expression.",
                "parameters": {
                    "type": "object",
                    "properties": {"expr": {"type": "string"}},
                    "required": ["expr"],
                },
            },
        }
    (tool_dir / "definition.json").write_text(json.dumps(definition))
    exec_path = tool_dir / "exec"
    exec_path.write_text("#!/bin/sh\n" + script)
    exec_path.chmod(exec_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool_dir


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    """A `calc` tool that always prints 4."""
    return write_tool(tmp_path / "calc")


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """A config directory holding an API key and a `coder` prompt."""
    cfg = tmp_path / "config"
    (cfg / "openrouter").mkdir(parents=True)
    (cfg / "openrouter" / "api_key").write_text("sk-or-test\n")
    (cfg / "prompts" / "coder").mkdir(parents=True)
    (cfg / "prompts" / "coder" / "system.md").write_text("Act as a coder.")
    return cfg
