from __future__ import annotations

import pytest

from bubblekit.agent.confirmation import (
    ConfirmationDecision,
    build_confirmation_prompt,
    classify_locally,
    normalize,
    parse_model_decision,
)


@pytest.mark.parametrize(
    "reply",
    ["yes", "Sure!", "ok let's go", "Take me there", "navigate", "Y"],
)
def test_positive_replies(reply: str) -> None:
    assert classify_locally(reply) is ConfirmationDecision.YES


@pytest.mark.parametrize(
    "reply",
    ["no", "Cancel that", "not now", "never mind", "Don’t", "maybe later"],
)
def test_negative_replies(reply: str) -> None:
    assert classify_locally(reply) is ConfirmationDecision.NO


@pytest.mark.parametrize(
    "reply",
    ["hmm", "what is this?", "yes no", "ok, cancel"],
)
def test_ambiguous_replies_are_unclear(reply: str) -> None:
    assert classify_locally(reply) is ConfirmationDecision.UNCLEAR


def test_single_letters_only_match_whole_words() -> None:
    # "n" and "y" must not fire inside ordinary words
    assert classify_locally("anything") is ConfirmationDecision.UNCLEAR
    assert classify_locally("yesterday") is ConfirmationDecision.UNCLEAR


def test_parse_model_decision() -> None:
    assert parse_model_decision("YES") is ConfirmationDecision.YES
    assert parse_model_decision(" No.\n") is ConfirmationDecision.NO
    assert parse_model_decision("UNCLEAR") is ConfirmationDecision.UNCLEAR
    assert parse_model_decision("I think so") is ConfirmationDecision.UNCLEAR
    assert parse_model_decision("") is ConfirmationDecision.UNCLEAR


def test_normalize_straightens_apostrophes_and_whitespace() -> None:
    assert normalize("  Don’t   GO ") == "don't go"


def test_prompt_mentions_title_and_reply() -> None:
    prompt = build_confirmation_prompt("Settings", "sure thing")

    assert '"Settings"' in prompt
    assert 'User response: "sure thing"' in prompt
    assert "UNCLEAR" in prompt
