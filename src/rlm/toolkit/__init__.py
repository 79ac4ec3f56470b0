"""Tool gateway: a single external tool exposed to the model.

A tool is a directory holding ``definition.json`` (the function schema
offered to the model) and an ``exec`` entry point run once per call.
"""

from rlm.toolkit.gateway import ToolGateway, load_tool_definition
from rlm.toolkit.models import FunctionObject, ToolDefinition

__all__ = [
    "ToolGateway",
    "ToolDefinition",
    "FunctionObject",
    "load_tool_definition",
]
