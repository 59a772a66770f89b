"""Agent tools module."""

from bubblekit.agent.tools.base import FunctionError, FunctionErrorKind, FunctionResult, Tool
from bubblekit.agent.tools.registry import ToolRegistry

__all__ = ["FunctionError", "FunctionErrorKind", "FunctionResult", "Tool", "ToolRegistry"]
