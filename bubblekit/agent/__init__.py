"""Agent core module."""

from bubblekit.agent.intents import AppIntent, IntentHandling, IntentMatch, IntentRegistry
from bubblekit.agent.loop import AssistantLoop
from bubblekit.agent.models import (
    AssistantMode,
    AssistantResponse,
    ConversationMessage,
    FunctionCall,
    MessageRole,
    PendingIntent,
    SafetyInfo,
)
from bubblekit.agent.tools import FunctionResult, Tool, ToolRegistry

__all__ = [
    "AppIntent",
    "AssistantLoop",
    "AssistantMode",
    "AssistantResponse",
    "ConversationMessage",
    "FunctionCall",
    "FunctionResult",
    "IntentHandling",
    "IntentMatch",
    "IntentRegistry",
    "MessageRole",
    "PendingIntent",
    "SafetyInfo",
    "Tool",
    "ToolRegistry",
]
