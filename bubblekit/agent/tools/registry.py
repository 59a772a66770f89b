"""Tool registry for dynamic tool management."""

from __future__ import annotations

from typing import Any

from loguru import logger

from bubblekit.agent.tools.base import FunctionHandler, FunctionResult, Tool
from bubblekit.providers.base import FunctionDeclaration


class ToolRegistry:
    """
    Registry for local tools.

    Maps a function name to an async handler. ``call()`` never raises: an
    unknown name, bad arguments or a crashing handler all come back as a
    failed ``FunctionResult``.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, FunctionHandler] = {}
        self._declarations: dict[str, FunctionDeclaration] = {}

    @classmethod
    def create_default(cls) -> ToolRegistry:
        """Registry pre-loaded with the built-in tools."""
        from bubblekit.agent.tools.builtin import default_tools

        registry = cls()
        for tool in default_tools():
            registry.register_tool(tool)
        return registry

    def register(
        self,
        name: str,
        handler: FunctionHandler,
        declaration: FunctionDeclaration | None = None,
    ) -> None:
        """Register a handler. An existing name is silently replaced."""
        if name in self._handlers:
            logger.debug(f"Replacing tool handler: {name}")
        self._handlers[name] = handler
        if declaration is not None:
            self._declarations[name] = declaration
        else:
            self._declarations.pop(name, None)

    def register_tool(self, tool: Tool) -> None:
        self.register(tool.name, tool.execute, tool.to_declaration())

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)
        self._declarations.pop(name, None)

    def clear(self) -> None:
        self._handlers.clear()
        self._declarations.clear()

    def has(self, name: str) -> bool:
        return name in self._handlers

    def list_names(self) -> list[str]:
        return list(self._handlers)

    def get_declarations(self) -> list[FunctionDeclaration]:
        """Declarations of registered tools, in registration order."""
        return [self._declarations[n] for n in self._handlers if n in self._declarations]

    async def call(self, name: str, arguments: dict[str, Any]) -> FunctionResult:
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Tool not found: {name}")
            return FunctionResult.not_found(name)

        try:
            result = await handler(arguments)
        except Exception as e:
            logger.exception(f"Tool {name} raised")
            return FunctionResult.execution_failed(str(e) or type(e).__name__)

        if not isinstance(result, FunctionResult):
            logger.error(f"Tool {name} returned {type(result).__name__}, expected FunctionResult")
            return FunctionResult.execution_failed(f"handler returned {type(result).__name__}")
        if not result.ok:
            logger.info(f"Tool {name} failed: {result.error}")
        return result

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers
