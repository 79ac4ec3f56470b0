"""ToolGateway: loads the single tool definition and runs its executable.

The gateway is stateless beyond the definition it loads at construction.
It never sees the transcript: the orchestrator passes in the raw
arguments string and receives the tool's stdout back.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from pydantic import ValidationError

from rlm.exceptions import (
    ToolDefinitionError,
    ToolExecutionFailedError,
    ToolLaunchError,
    ToolOutputNotTextError,
    UnknownFunctionRequestedError,
)
from rlm.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)

DEFINITION_FILENAME = "definition.json"
EXEC_FILENAME = "exec"


def load_tool_definition(tool_dir: Path) -> ToolDefinition:
    """Read and validate ``<tool_dir>/definition.json``.

    Raises:
        ToolDefinitionError: If the file cannot be read or does not match
            the function-calling schema.
    """
    definition_path = Path(tool_dir) / DEFINITION_FILENAME
    try:
        raw = definition_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ToolDefinitionError(str(definition_path), f"cannot read file: {exc}") from exc
    try:
        return ToolDefinition.model_validate_json(raw)
    except ValidationError as exc:
        raise ToolDefinitionError(str(definition_path), str(exc)) from exc


class ToolGateway:
    """Holds zero or one tool definition and executes it.

    Usage::

        gateway = ToolGateway(Path("tools/calc"))
        if gateway.is_configured():
            gateway.resolve("calc")
            output = gateway.invoke('{"expr": "2+2"}')
    """

    def __init__(self, tool_dir: Path | str | None = None) -> None:
        self._tool_dir = Path(tool_dir) if tool_dir is not None else None
        self._definition: ToolDefinition | None = None
        if self._tool_dir is not None:
            self._definition = load_tool_definition(self._tool_dir)
            logger.debug(
                "Loaded tool %r from %s", self._definition.name, self._tool_dir
            )

    @property
    def definition(self) -> ToolDefinition | None:
        return self._definition

    @property
    def exec_path(self) -> Path | None:
        if self._tool_dir is None:
            return None
        return self._tool_dir / EXEC_FILENAME

    def is_configured(self) -> bool:
        """Return whether a tool directory was supplied."""
        return self._definition is not None

    def tools(self) -> list[ToolDefinition] | None:
        """Tool list for the request envelope, or None when unconfigured."""
        if self._definition is None:
            return None
        return [self._definition]

    def resolve(self, name: str) -> ToolDefinition:
        """Match a requested function name against the configured tool.

        Raises:
            UnknownFunctionRequestedError: If no tool is configured or the
                name does not match its definition.
        """
        if self._definition is None or self._definition.name != name:
            raise UnknownFunctionRequestedError(name)
        return self._definition

    def invoke(self, arguments: str) -> str:
        """Run the tool's ``exec`` with ``arguments`` as its only argument.

        Blocks until the process exits. Stderr is captured and logged at
        debug level; stdout is the result.

        Args:
            arguments: Raw JSON text of the function arguments.

        Returns:
            The complete stdout of the process, decoded as UTF-8.

        Raises:
            ToolLaunchError: If no tool is configured or the process
                cannot be started.
            ToolExecutionFailedError: If the process exits non-zero.
            ToolOutputNotTextError: If stdout is not valid UTF-8.
        """
        exec_path = self.exec_path
        if exec_path is None:
            raise ToolLaunchError("<none>", "no tool directory configured")

        logger.debug("Running %s", exec_path)
        try:
            completed = subprocess.run(
                [str(exec_path.absolute()), arguments],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise ToolLaunchError(str(exec_path), str(exc)) from exc

        if completed.stderr:
            logger.debug(
                "Tool stderr: %s", completed.stderr.decode("utf-8", errors="replace")
            )
        if completed.returncode != 0:
            raise ToolExecutionFailedError(completed.returncode)

        try:
            return completed.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ToolOutputNotTextError() from exc
