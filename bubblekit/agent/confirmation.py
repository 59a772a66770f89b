"""Interpretation of the user's reply to a pending navigation confirmation."""

from __future__ import annotations

import enum
import re


class ConfirmationDecision(str, enum.Enum):
    YES = "yes"
    NO = "no"
    UNCLEAR = "unclear"


POSITIVE_WORDS = (
    "yes", "y", "sure", "ok", "okay", "go", "navigate", "proceed", "continue",
    "let's go", "take me there",
)
NEGATIVE_WORDS = (
    "no", "n", "cancel", "stop", "don't", "not now", "later", "never mind", "nevermind",
)


def _phrase_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    # Whole words only: "n" must not match inside "navigate"
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<![\w'])(?:{alternatives})(?![\w'])")


_POSITIVE_RE = _phrase_pattern(POSITIVE_WORDS)
_NEGATIVE_RE = _phrase_pattern(NEGATIVE_WORDS)


def normalize(text: str) -> str:
    """Lowercase, straighten apostrophes and collapse whitespace."""
    text = text.lower().replace("’", "'").strip()
    return re.sub(r"\s+", " ", text)


def classify_locally(text: str) -> ConfirmationDecision:
    """Keyword fallback: exactly one side matching decides, anything else is unclear."""
    normalized = normalize(text)
    positive = bool(_POSITIVE_RE.search(normalized))
    negative = bool(_NEGATIVE_RE.search(normalized))
    if positive and not negative:
        return ConfirmationDecision.YES
    if negative and not positive:
        return ConfirmationDecision.NO
    return ConfirmationDecision.UNCLEAR


def parse_model_decision(text: str) -> ConfirmationDecision:
    """Map the model's one-word verdict; anything unexpected is unclear."""
    verdict = text.strip().strip(".!\"'").lower()
    if verdict == "yes":
        return ConfirmationDecision.YES
    if verdict == "no":
        return ConfirmationDecision.NO
    return ConfirmationDecision.UNCLEAR


def build_confirmation_prompt(intent_title: str, reply: str) -> str:
    return f"""The user is being asked to confirm if they want to navigate to "{intent_title}".

User response: "{reply}"

Analyze the user's response and determine if they want to proceed with the navigation or not.

Respond with ONLY one of these exact words:
- "YES" if the user wants to proceed
- "NO" if the user wants to cancel or decline
- "UNCLEAR" if the response is ambiguous

Consider context clues like:
- Positive words: yes, sure, go ahead, proceed, navigate, take me there, let's go
- Negative words: no, cancel, stop, don't, never mind, not now, later
- Ambiguous responses that need clarification"""
