"""Deterministic presentation helpers: titles, speech text, follow-ups, offline replies.

Everything here is a pure function of the user's input (or the reply text);
nothing is model-derived.
"""

from __future__ import annotations

import enum
import re


class InputTopic(str, enum.Enum):
    GREETING = "greeting"
    HELP = "help"
    REMINDER = "reminder"
    SEARCH = "search"
    GENERIC = "generic"


# Checked in order; first hit wins.
_TOPIC_PATTERNS: list[tuple[InputTopic, re.Pattern[str]]] = [
    (InputTopic.GREETING, re.compile(r"\b(?:hello|hi)\b")),
    (InputTopic.HELP, re.compile(r"\bhelp")),
    (InputTopic.REMINDER, re.compile(r"\b(?:remind|task)")),
    (InputTopic.SEARCH, re.compile(r"\bsearch")),
]

_TITLES = {
    InputTopic.GREETING: "Greeting",
    InputTopic.HELP: "Help Available",
    InputTopic.REMINDER: "Reminder Setup",
    InputTopic.SEARCH: "Search Request",
    InputTopic.GENERIC: "Response",
}

_FOLLOW_UPS = {
    InputTopic.GREETING: ["What can you help me with?", "Show me your capabilities", "How do I get started?"],
    InputTopic.HELP: ["Create a reminder", "Search for something", "Ask a question"],
}
_DEFAULT_FOLLOW_UPS = ["Tell me more", "Can you help with something else?", "What else can you do?"]

MAX_FOLLOW_UPS = 3


def classify_topic(text: str) -> InputTopic:
    lowered = text.lower()
    for topic, pattern in _TOPIC_PATTERNS:
        if pattern.search(lowered):
            return topic
    return InputTopic.GENERIC


def generate_title(text: str) -> str:
    return _TITLES[classify_topic(text)]


def generate_follow_ups(text: str) -> list[str]:
    return list(_FOLLOW_UPS.get(classify_topic(text), _DEFAULT_FOLLOW_UPS))[:MAX_FOLLOW_UPS]


# Markdown emphasis and bullets are read aloud literally by TTS engines.
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")
_LIST_MARKER_RE = re.compile(r"^(\s*)[-*+]\s", re.MULTILINE)
_BULLET_RE = re.compile(r"•\s?")


def speech_text(text: str) -> str:
    """Strip emphasis markers and bullet glyphs so TTS doesn't read symbols aloud."""
    t = _BOLD_RE.sub(r"\1", text)
    t = _ITALIC_RE.sub(r"\1", t)
    t = _LIST_MARKER_RE.sub(r"\1", t)
    t = _BULLET_RE.sub("", t)
    return t.replace("*", "").strip()


def offline_reply(text: str) -> str:
    """Canned reply used when no model gateway is attached."""
    topic = classify_topic(text)
    if topic is InputTopic.GREETING:
        return "Hello! I'm your AI assistant. How can I help you today?"
    if topic is InputTopic.HELP:
        return (
            "I can help you with:\n"
            "• Answering questions\n"
            "• Creating reminders\n"
            "• Searching information\n"
            "• General assistance"
        )
    if topic is InputTopic.REMINDER:
        return "I can help you create a reminder. Just tell me what you'd like to be reminded about and when."
    if topic is InputTopic.SEARCH:
        return "I can search for information for you. What would you like me to look up?"
    return f"I understand you're asking about: {text}. How can I assist you with this?"
