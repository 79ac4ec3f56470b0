"""Orchestrator package -- the conversation loop and its types.

Provides the Orchestrator class, its configuration and state enum, and
the step/result types it produces.
"""

from rlm.orchestrator.config import (
    DEFAULT_CHARACTER_LIMIT,
    DEFAULT_MODEL,
    OrchestratorConfig,
    OrchestratorState,
)
from rlm.orchestrator.loop import Orchestrator
from rlm.orchestrator.models import (
    Continue,
    Finished,
    OrchestratorResult,
    Step,
    ToolStep,
)

__all__ = [
    # Core
    "Orchestrator",
    # Config
    "OrchestratorConfig",
    "OrchestratorState",
    "DEFAULT_MODEL",
    "DEFAULT_CHARACTER_LIMIT",
    # Models
    "Continue",
    "Finished",
    "Step",
    "ToolStep",
    "OrchestratorResult",
]
