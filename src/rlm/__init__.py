"""rlm: a command-line client for one chat-completion exchange.

Pipes text to an OpenAI-compatible API and prints the answer, running a
single external tool whenever the model asks for it.
"""

from rlm._version import __version__

# Core entry point
from rlm.orchestrator import (
    Continue,
    Finished,
    Orchestrator,
    OrchestratorConfig,
    OrchestratorResult,
    OrchestratorState,
)

# Wire model
from rlm.protocols import FunctionCall, Message, RequestEnvelope, ToolCall
from rlm.transcript import BudgetGuard, Transcript

# Collaborators
from rlm.llm import LLMClient, OpenRouterClient
from rlm.toolkit import ToolDefinition, ToolGateway

# Exceptions
from rlm.exceptions import (
    BudgetExceededError,
    ConfigError,
    EmptyInputError,
    EmptyModelReplyError,
    RlmError,
    UnknownFunctionRequestedError,
)

__all__ = [
    "__version__",
    "Orchestrator",
    "OrchestratorConfig",
    "OrchestratorResult",
    "OrchestratorState",
    "Continue",
    "Finished",
    "Message",
    "ToolCall",
    "FunctionCall",
    "RequestEnvelope",
    "Transcript",
    "BudgetGuard",
    "LLMClient",
    "OpenRouterClient",
    "ToolDefinition",
    "ToolGateway",
    "RlmError",
    "ConfigError",
    "EmptyInputError",
    "BudgetExceededError",
    "EmptyModelReplyError",
    "UnknownFunctionRequestedError",
]
