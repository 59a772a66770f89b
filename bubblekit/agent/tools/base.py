"""Base types for local tools: results, errors and the Tool interface."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from bubblekit.providers.base import FunctionDeclaration, to_wire_value


class FunctionErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_ARGUMENTS = "invalid_arguments"
    EXECUTION_FAILED = "execution_failed"


@dataclass(frozen=True, slots=True)
class FunctionError:
    kind: FunctionErrorKind
    message: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}" if self.message else self.kind.value


@dataclass(frozen=True, slots=True)
class FunctionResult:
    """Outcome of one tool call: either ``data`` or ``error`` is set."""

    data: dict[str, Any] = field(default_factory=dict)
    error: FunctionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: dict[str, Any] | None = None) -> FunctionResult:
        return cls(data=dict(data or {}))

    @classmethod
    def failure(cls, kind: FunctionErrorKind, message: str = "") -> FunctionResult:
        return cls(error=FunctionError(kind, message))

    @classmethod
    def not_found(cls, name: str = "") -> FunctionResult:
        return cls.failure(FunctionErrorKind.NOT_FOUND, f"function '{name}' is not registered" if name else "")

    @classmethod
    def invalid_arguments(cls, message: str = "") -> FunctionResult:
        return cls.failure(FunctionErrorKind.INVALID_ARGUMENTS, message)

    @classmethod
    def execution_failed(cls, message: str) -> FunctionResult:
        return cls.failure(FunctionErrorKind.EXECUTION_FAILED, message)

    def to_response(self) -> dict[str, Any]:
        """Payload for a ``functionResponse`` part."""
        if self.error is not None:
            return {"error": {"kind": self.error.kind.value, "message": self.error.message}}
        return {"result": to_wire_value(self.data)}


FunctionHandler = Callable[[dict[str, Any]], Awaitable[FunctionResult]]


class Tool(ABC):
    """A named, schema-described local capability the model may invoke."""

    name: str
    description: str
    parameters: dict[str, Any]

    @abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> FunctionResult:
        """Run the tool. Must report bad input as a failure result, not raise."""

    def to_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )
