"""Conversation and response types exchanged with the host."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bubblekit.agent.intents import AppIntent


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class AssistantMode(str, enum.Enum):
    TEXT = "text"
    VOICE = "voice"
    FUNCTION_CALL = "function_call"


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True, slots=True)
class FunctionCall:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SafetyInfo:
    pii_present: bool = False
    needs_disclaimer: bool = False
    refusal: bool = False
    refusal_reason: str | None = None


@dataclass(frozen=True, slots=True)
class AssistantResponse:
    """What one turn produced, ready for display (and optionally speech)."""

    text: str
    mode: AssistantMode = AssistantMode.TEXT
    title: str | None = None
    speak: str = ""
    follow_up: list[str] = field(default_factory=list)
    function_call: FunctionCall | None = None
    safety: SafetyInfo = field(default_factory=SafetyInfo)


@dataclass(frozen=True, slots=True)
class PendingIntent:
    """A resolved navigation intent waiting for the user's yes/no."""

    intent: AppIntent
    entities: dict[str, Any] = field(default_factory=dict)
