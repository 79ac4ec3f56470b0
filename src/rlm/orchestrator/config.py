"""Orchestrator configuration types.

Provides OrchestratorState and OrchestratorConfig for the conversation
loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable

DEFAULT_MODEL = "thudm/glm-4-32b:free"
DEFAULT_CHARACTER_LIMIT = 16384


class OrchestratorState(str, enum.Enum):
    """States of one conversational exchange.

    ``DONE`` and ``FAILED`` are terminal.
    """

    COLLECTING = "collecting"
    REQUESTING = "requesting"
    DECIDING = "deciding"
    INVOKING = "invoking"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrchestratorState.DONE, OrchestratorState.FAILED)


@dataclass
class OrchestratorConfig:
    """Configuration for the conversation loop.

    Attributes:
        model: Model identifier sent with every request.
        character_limit: Maximum total characters of message content.
        on_request: Called with each outgoing JSON payload before it is
            sent (raw-request debugging).
        on_tool_result: Called with each tool result once it fits the
            character budget, before it is appended.
    """

    model: str = DEFAULT_MODEL
    character_limit: int = DEFAULT_CHARACTER_LIMIT
    on_request: Callable[[dict], None] | None = None
    on_tool_result: Callable[[str], None] | None = None
