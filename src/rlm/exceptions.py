"""rlm exception hierarchy.

All rlm-specific exceptions inherit from RlmError. Every error is fatal
for the invocation: the CLI reports it and exits non-zero.
"""


class RlmError(Exception):
    """Base exception for all rlm errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(RlmError):
    """Raised when local configuration (credential, prompt file, environment) is unusable."""


class ToolDefinitionError(ConfigError):
    """Raised when a tool directory has a missing or invalid definition.json."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid tool definition at {path}: {reason}")


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class InputDecodeError(RlmError):
    """Raised when the user message on stdin is not valid UTF-8."""


class EmptyInputError(RlmError):
    """Raised when the transcript carries no content at all."""

    def __init__(self) -> None:
        super().__init__("Input is empty")


class BudgetExceededError(RlmError):
    """Raised when transcript content exceeds the character limit."""

    def __init__(self, actual: int, limit: int) -> None:
        self.actual = actual
        self.limit = limit
        super().__init__(
            f"Input too long: {actual} characters given, but the limit is {limit}"
        )


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(RlmError):
    """Base for errors caused by what the remote model sent back."""


class EmptyModelReplyError(ProtocolError):
    """Raised when a reply has neither content nor tool calls."""

    def __init__(self) -> None:
        super().__init__("Model returned empty content after user input")


class UnknownFunctionRequestedError(ProtocolError):
    """Raised when the model calls a function that is not configured."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Model called an unknown function: {name}")


# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------


class ToolError(RlmError):
    """Base for errors raised while running the configured tool."""


class ToolLaunchError(ToolError):
    """Raised when the tool executable cannot be started at all."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to execute tool at {path}: {reason}")


class ToolExecutionFailedError(ToolError):
    """Raised when the tool process exits with a non-zero status."""

    def __init__(self, exit_status: int) -> None:
        self.exit_status = exit_status
        super().__init__(f"Tool failed with exit status: {exit_status}")


class ToolOutputNotTextError(ToolError):
    """Raised when the tool writes something other than UTF-8 text to stdout."""

    def __init__(self) -> None:
        super().__init__("Tool output is not valid UTF-8")


class OrchestratorError(RlmError):
    """Raised when the orchestrator is driven out of order."""
