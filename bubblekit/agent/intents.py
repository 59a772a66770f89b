"""Host navigation intents: registry, navigation tool schema and local matching."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Protocol

from loguru import logger

from bubblekit.providers.base import FunctionDeclaration

NAVIGATE_TOOL_NAME = "navigate_to_intent"

# Local matcher weights
KEYWORD_SCORE = 2
UTTERANCE_SCORE = 3
TITLE_SCORE = 1

IntentCallback = Callable[[dict[str, Any]], Awaitable[None] | None]


class IntentHandling(Protocol):
    """Host object that performs navigation for intents without their own callback."""

    async def handle_intent(self, intent_id: str, entities: dict[str, Any]) -> None: ...


@dataclass(frozen=True, slots=True)
class AppIntent:
    """A navigable feature of the host application."""

    id: str
    title: str
    description: str = ""
    sample_utterances: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    handler: IntentCallback | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sample_utterances", tuple(self.sample_utterances))
        object.__setattr__(self, "keywords", tuple(self.keywords))


@dataclass(frozen=True, slots=True)
class IntentMatch:
    intent: AppIntent
    score: int
    entities: dict[str, Any]


class IntentRegistry:
    """
    Navigation intents keyed by id.

    Insertion order is kept: the first registration of an id fixes its
    position, re-registering replaces the intent in place. That order drives
    the navigation enum and the local matcher's tie-break.
    """

    def __init__(self, intent_handler: IntentHandling | None = None):
        self._intents: dict[str, AppIntent] = {}
        # The host owns this object; we only call it.
        self.intent_handler = intent_handler

    def register(self, intent: AppIntent) -> None:
        if intent.id in self._intents:
            logger.debug(f"Replacing intent: {intent.id}")
        self._intents[intent.id] = intent

    def register_all(self, intents: Iterable[AppIntent]) -> None:
        for intent in intents:
            self.register(intent)

    def get(self, intent_id: str) -> AppIntent | None:
        return self._intents.get(intent_id)

    def all(self) -> list[AppIntent]:
        return list(self._intents.values())

    @property
    def ids(self) -> list[str]:
        return list(self._intents)

    def __len__(self) -> int:
        return len(self._intents)

    def __contains__(self, intent_id: object) -> bool:
        return intent_id in self._intents

    # ------------------------------------------------------------------
    # Model-facing schema
    # ------------------------------------------------------------------

    def tool_declaration(self) -> FunctionDeclaration | None:
        """The ``navigate_to_intent`` declaration over the current ids, or None when empty."""
        if not self._intents:
            return None
        return FunctionDeclaration(
            name=NAVIGATE_TOOL_NAME,
            description=(
                "Navigate to a specific feature or screen within the application "
                "based on user intent."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "intent_id": {
                        "type": "string",
                        "description": "The ID of the application intent to navigate to.",
                        "enum": self.ids,
                    },
                },
                "required": ["intent_id"],
            },
        )

    # ------------------------------------------------------------------
    # Local matching
    # ------------------------------------------------------------------

    @staticmethod
    def score(intent: AppIntent, text: str) -> tuple[int, list[str]]:
        """Score one intent against ``text``; returns (score, matched keywords)."""
        lowered = text.lower()
        score = 0
        matched: list[str] = []

        for keyword in intent.keywords:
            if keyword.lower() in lowered:
                score += KEYWORD_SCORE
                matched.append(keyword)

        for utterance in intent.sample_utterances:
            u = utterance.lower()
            if u in lowered or lowered in u:
                score += UTTERANCE_SCORE

        title = intent.title.lower()
        if title in lowered or lowered in title:
            score += TITLE_SCORE

        return score, matched

    def score_all(self, text: str) -> list[IntentMatch]:
        """Positive-scoring intents, best first; equal scores keep registration order."""
        if not text.strip():
            return []
        matches = []
        for intent in self._intents.values():
            score, matched = self.score(intent, text)
            if score > 0:
                matches.append(IntentMatch(
                    intent=intent,
                    score=score,
                    entities={"query": text, "matched_keywords": matched},
                ))
        # sorted() is stable, so ties stay in registration order
        return sorted(matches, key=lambda m: m.score, reverse=True)

    def match_locally(self, text: str) -> IntentMatch | None:
        matches = self.score_all(text)
        if not matches:
            return None
        best = matches[0]
        logger.debug(f"Local intent match: {best.intent.id} (score={best.score})")
        return best

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def route(self, intent_id: str, entities: dict[str, Any]) -> bool:
        """Run the intent's callback (or the host handler). False if the id is unknown."""
        intent = self._intents.get(intent_id)
        if intent is None:
            logger.warning(f"Intent with ID {intent_id} not found")
            return False
        await self.run(intent, entities)
        return True

    async def run(self, intent: AppIntent, entities: dict[str, Any]) -> None:
        if intent.handler is not None:
            outcome = intent.handler(entities)
            if inspect.isawaitable(outcome):
                await outcome
        elif self.intent_handler is not None:
            await self.intent_handler.handle_intent(intent.id, entities)
        else:
            logger.warning(f"Intent {intent.id} has no handler")
