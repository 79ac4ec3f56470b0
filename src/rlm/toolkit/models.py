"""Toolkit data models for the external tool definition.

Pydantic models mirroring the OpenAI function-calling schema, loaded
from a tool directory's ``definition.json``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class FunctionObject(BaseModel):
    """The function a tool exposes to the model.

    Attributes:
        name: Function name the model must use when calling the tool.
        description: Human-readable description of when/why to use it.
        parameters: JSON Schema dict describing the function arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any]


class ToolDefinition(BaseModel):
    """A single tool definition for LLM consumption.

    Immutable for the lifetime of the process.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["function"] = "function"
    function: FunctionObject

    @property
    def name(self) -> str:
        return self.function.name

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format.

        Returns:
            Dict with "type": "function" and nested "function" object.
        """
        return self.model_dump(mode="json")
