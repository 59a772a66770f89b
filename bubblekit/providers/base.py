"""Wire contract for the model gateway: request/response types and errors."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any, Protocol
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for wire types: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class FunctionCallPart(WireModel):
    name: str
    args: dict[str, JsonValue] = Field(default_factory=dict)


class FunctionResponsePart(WireModel):
    name: str
    response: dict[str, JsonValue] = Field(default_factory=dict)


class Part(WireModel):
    """One piece of a turn: text, a tool call, or a tool result."""

    text: str | None = None
    function_call: FunctionCallPart | None = None
    function_response: FunctionResponsePart | None = None


class Content(WireModel):
    role: str = "model"
    parts: list[Part] = Field(default_factory=list)

    @classmethod
    def from_text(cls, role: str, text: str) -> Content:
        return cls(role=role, parts=[Part(text=text)])


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class FunctionDeclaration(WireModel):
    name: str
    description: str | None = None
    parameters: dict[str, JsonValue] | None = None


class Tool(WireModel):
    function_declarations: list[FunctionDeclaration] | None = None


class FunctionCallingMode(str, enum.Enum):
    AUTO = "AUTO"
    ANY = "ANY"
    NONE = "NONE"


class FunctionCallingConfig(WireModel):
    mode: FunctionCallingMode | None = None
    allowed_function_names: list[str] | None = None


class ToolConfig(WireModel):
    function_calling_config: FunctionCallingConfig | None = None

    @classmethod
    def auto(cls) -> ToolConfig:
        return cls(function_calling_config=FunctionCallingConfig(mode=FunctionCallingMode.AUTO))


class SafetySetting(WireModel):
    category: str
    threshold: str


class GenerationConfig(WireModel):
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    response_mime_type: str | None = None


class GenerateContentRequest(WireModel):
    contents: list[Content]
    tools: list[Tool] | None = None
    tool_config: ToolConfig | None = None
    safety_settings: list[SafetySetting] | None = None
    system_instruction: Content | None = None
    generation_config: GenerationConfig | None = None


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class Candidate(WireModel):
    content: Content = Field(default_factory=Content)
    finish_reason: str | None = None


class PromptFeedback(WireModel):
    block_reason: str | None = None


class GenerateContentResponse(WireModel):
    candidates: list[Candidate] | None = None
    prompt_feedback: PromptFeedback | None = None

    @property
    def first_parts(self) -> list[Part]:
        if not self.candidates:
            return []
        return self.candidates[0].content.parts

    def first_function_call(self) -> FunctionCallPart | None:
        """First part carrying a tool call in the first candidate, if any."""
        for part in self.first_parts:
            if part.function_call is not None:
                return part.function_call
        return None

    @property
    def text(self) -> str:
        """All text parts of the first candidate, concatenated."""
        return "".join(p.text for p in self.first_parts if p.text)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Base class for every failure of a single gateway call."""


class GatewayTransportError(GatewayError):
    """DNS, connect, read or timeout failure."""


class GatewayHTTPError(GatewayError):
    def __init__(self, status_code: int, body: str):
        super().__init__(body or f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class GatewayDecodeError(GatewayError):
    """Response body was not valid JSON or did not match the schema."""


class GatewayNoCandidatesError(GatewayError):
    def __init__(self) -> None:
        super().__init__("response contained no candidates")


class GatewayBlockedError(GatewayError):
    """Provider refused to generate for policy reasons."""

    def __init__(self, reason: str):
        super().__init__(f"blocked by provider: {reason}")
        self.reason = reason


class ModelGateway(Protocol):
    async def generate(
        self,
        contents: list[Content],
        tools: list[Tool] | None = None,
        tool_config: ToolConfig | None = None,
        generation: GenerationConfig | None = None,
    ) -> GenerateContentResponse: ...


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------


def to_wire_value(value: Any) -> JsonValue:
    """Convert a native result value into a JSON-safe value.

    Unknown objects fall back to their ``str()`` form.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, dict):
        return {str(k): to_wire_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire_value(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return to_wire_value(value.value)
    if isinstance(value, UUID):
        return str(value)
    return str(value)
