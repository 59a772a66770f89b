from __future__ import annotations

from typing import Any

import pytest

from bubblekit.agent.intents import NAVIGATE_TOOL_NAME, AppIntent, IntentRegistry

SETTINGS = AppIntent(
    id="open_settings",
    title="Settings",
    sample_utterances=["open settings"],
    keywords=["settings", "preferences"],
)
PROFILE = AppIntent(
    id="view_profile",
    title="Profile",
    sample_utterances=["show my profile"],
    keywords=["profile", "account"],
)


class FakeIntentHandler:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def handle_intent(self, intent_id: str, entities: dict[str, Any]) -> None:
        self.calls.append((intent_id, entities))


def test_score_adds_keyword_utterance_and_title_weights() -> None:
    score, matched = IntentRegistry.score(SETTINGS, "open settings")

    # keyword "settings" (2) + utterance (3) + title contained in input (1)
    assert score == 6
    assert matched == ["settings"]


def test_score_utterance_contains_input() -> None:
    score, matched = IntentRegistry.score(PROFILE, "my profile")

    # keyword "profile" (2) + input inside "show my profile" (3) + title (1)
    assert score == 6
    assert matched == ["profile"]


def test_match_locally_returns_best_intent_with_entities() -> None:
    registry = IntentRegistry()
    registry.register_all([SETTINGS, PROFILE])

    match = registry.match_locally("please open settings")

    assert match is not None
    assert match.intent.id == "open_settings"
    assert match.entities == {"query": "please open settings", "matched_keywords": ["settings"]}


def test_no_positive_score_means_no_match() -> None:
    registry = IntentRegistry()
    registry.register_all([SETTINGS, PROFILE])

    assert registry.match_locally("what is the weather") is None
    assert registry.match_locally("   ") is None


def test_ties_go_to_first_registered_intent() -> None:
    a = AppIntent(id="a", title="Alpha", keywords=["report"])
    b = AppIntent(id="b", title="Beta", keywords=["report"])
    registry = IntentRegistry()
    registry.register(a)
    registry.register(b)

    match = registry.match_locally("report")

    assert match is not None
    assert match.intent.id == "a"


def test_local_matching_is_deterministic() -> None:
    registry = IntentRegistry()
    registry.register_all([PROFILE, SETTINGS])

    results = {registry.match_locally("account settings").intent.id for _ in range(20)}

    assert len(results) == 1


def test_reregistering_keeps_position_and_replaces_intent() -> None:
    registry = IntentRegistry()
    registry.register_all([SETTINGS, PROFILE])
    registry.register(AppIntent(id="open_settings", title="App Settings"))

    assert registry.ids == ["open_settings", "view_profile"]
    assert registry.get("open_settings").title == "App Settings"


def test_tool_declaration_enumerates_ids() -> None:
    registry = IntentRegistry()
    assert registry.tool_declaration() is None

    registry.register_all([SETTINGS, PROFILE])
    decl = registry.tool_declaration()

    assert decl is not None
    assert decl.name == NAVIGATE_TOOL_NAME
    assert decl.parameters["properties"]["intent_id"]["enum"] == ["open_settings", "view_profile"]
    assert decl.parameters["required"] == ["intent_id"]


@pytest.mark.asyncio
async def test_route_prefers_intent_callback() -> None:
    received: list[dict[str, Any]] = []
    host = FakeIntentHandler()
    intent = AppIntent(id="open_settings", title="Settings", handler=received.append)
    registry = IntentRegistry(host)
    registry.register(intent)

    routed = await registry.route("open_settings", {"intent_id": "open_settings"})

    assert routed is True
    assert received == [{"intent_id": "open_settings"}]
    assert host.calls == []


@pytest.mark.asyncio
async def test_route_falls_back_to_host_handler() -> None:
    host = FakeIntentHandler()
    registry = IntentRegistry(host)
    registry.register(PROFILE)

    await registry.route("view_profile", {"intent_id": "view_profile"})

    assert host.calls == [("view_profile", {"intent_id": "view_profile"})]


@pytest.mark.asyncio
async def test_route_unknown_intent_returns_false() -> None:
    registry = IntentRegistry(FakeIntentHandler())

    assert await registry.route("missing", {}) is False


def test_app_intent_normalizes_lists_to_tuples() -> None:
    assert SETTINGS.keywords == ("settings", "preferences")
    assert SETTINGS.sample_utterances == ("open settings",)


def test_keyword_and_title_hit_beats_unrelated_intent() -> None:
    transfer = AppIntent(id="transfer_money", title="Transfer Money", keywords=["transfer", "send", "move"])
    unrelated = AppIntent(id="view_profile", title="Profile", keywords=["profile", "account"])
    registry = IntentRegistry()
    registry.register_all([unrelated, transfer])

    matches = registry.score_all("I want to transfer money to Sam")

    # keyword "transfer" (2) + title inside input (1); the unrelated intent scores 0 and is dropped
    assert [m.intent.id for m in matches] == ["transfer_money"]
    assert matches[0].score >= 3
    assert matches[0].entities["matched_keywords"] == ["transfer"]
