from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from bubblekit.agent.loop import ERROR_TEXT, AssistantLoop
from bubblekit.config.schema import GeminiConfig, SafetySettingConfig
from bubblekit.providers.base import (
    Content,
    FunctionDeclaration,
    GatewayBlockedError,
    GatewayDecodeError,
    GatewayHTTPError,
    GatewayNoCandidatesError,
    GatewayTransportError,
    GenerationConfig,
    Tool,
    ToolConfig,
    to_wire_value,
)
from bubblekit.providers.gemini_provider import GeminiProvider


def _provider(handler: Callable[[httpx.Request], httpx.Response], **overrides: Any) -> GeminiProvider:
    config = GeminiConfig(api_key="test-key", **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiProvider(config, client=client)


def _text_body(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}]}


@pytest.mark.asyncio
async def test_generate_posts_camel_case_body_with_key_param() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_text_body("Hello there"))

    provider = _provider(
        handler,
        system_instruction="Be brief.",
        safety=[SafetySettingConfig(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH")],
    )
    decl = FunctionDeclaration(
        name="create_task",
        description="Create a task",
        parameters={"type": "object", "properties": {"title": {"type": "string"}}},
    )

    response = await provider.generate(
        [Content.from_text("user", "hi")],
        tools=[Tool(function_declarations=[decl])],
        tool_config=ToolConfig.auto(),
        generation=GenerationConfig(temperature=0.3),
    )

    assert response.text == "Hello there"
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/models/gemini-2.5-flash:generateContent")
    assert request.url.params["key"] == "test-key"
    assert request.headers["content-type"] == "application/json"

    body = json.loads(request.content)
    assert body["contents"] == [{"role": "user", "parts": [{"text": "hi"}]}]
    assert body["tools"][0]["functionDeclarations"][0]["name"] == "create_task"
    assert body["toolConfig"] == {"functionCallingConfig": {"mode": "AUTO"}}
    assert body["generationConfig"] == {"temperature": 0.3}
    assert body["systemInstruction"] == {"role": "system", "parts": [{"text": "Be brief."}]}
    assert body["safetySettings"] == [{"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_ONLY_HIGH"}]


@pytest.mark.asyncio
async def test_generate_omits_unset_optional_fields() -> None:
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_text_body("ok"))

    provider = _provider(handler)
    await provider.generate([Content.from_text("user", "hi")])

    assert set(bodies[0]) == {"contents"}


@pytest.mark.asyncio
async def test_function_call_part_is_decoded() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "candidates": [{
                "content": {"role": "model", "parts": [
                    {"text": "ignored sibling text"},
                    {"functionCall": {"name": "navigate_to_intent", "args": {"intent_id": "open_settings"}}},
                ]},
            }],
        })

    provider = _provider(handler)
    response = await provider.generate([Content.from_text("user", "open settings")])

    call = response.first_function_call()
    assert call is not None
    assert call.name == "navigate_to_intent"
    assert call.args == {"intent_id": "open_settings"}


@pytest.mark.asyncio
async def test_non_2xx_status_raises_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="API key not valid")

    provider = _provider(handler)
    with pytest.raises(GatewayHTTPError) as excinfo:
        await provider.generate([Content.from_text("user", "hi")])

    assert excinfo.value.status_code == 403
    assert "API key not valid" in excinfo.value.body


@pytest.mark.asyncio
async def test_invalid_json_raises_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    provider = _provider(handler)
    with pytest.raises(GatewayDecodeError):
        await provider.generate([Content.from_text("user", "hi")])


@pytest.mark.asyncio
async def test_transport_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)
    with pytest.raises(GatewayTransportError):
        await provider.generate([Content.from_text("user", "hi")])


@pytest.mark.asyncio
async def test_block_reason_wins_over_missing_candidates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    provider = _provider(handler)
    with pytest.raises(GatewayBlockedError) as excinfo:
        await provider.generate([Content.from_text("user", "something unsafe")])

    assert excinfo.value.reason == "SAFETY"


@pytest.mark.asyncio
async def test_empty_candidates_without_block_reason() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    provider = _provider(handler)
    with pytest.raises(GatewayNoCandidatesError):
        await provider.generate([Content.from_text("user", "hi")])


def test_duplicate_declaration_names_are_rejected() -> None:
    provider = GeminiProvider(GeminiConfig(api_key="k"))
    decl = FunctionDeclaration(name="get_time", description="Time")

    with pytest.raises(ValueError, match="get_time"):
        provider.build_request(
            [Content.from_text("user", "hi")],
            tools=[Tool(function_declarations=[decl]), Tool(function_declarations=[decl])],
        )


def test_endpoint_tolerates_trailing_slash_in_base_url() -> None:
    provider = GeminiProvider(GeminiConfig(base_url="https://example.test/v1beta/", model="models/m"))

    assert provider.endpoint == "https://example.test/v1beta/models/m:generateContent"


def test_to_wire_value_converts_native_types() -> None:
    import enum
    import uuid
    from datetime import datetime, timezone

    class Color(enum.Enum):
        RED = "red"

    ident = uuid.UUID("12345678-1234-5678-1234-567812345678")
    when = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    value = to_wire_value({"when": when, "color": Color.RED, "id": ident, "tags": ("a", "b"), "n": 1})

    assert value == {
        "when": "2025-01-02T03:04:05+00:00",
        "color": "red",
        "id": "12345678-1234-5678-1234-567812345678",
        "tags": ["a", "b"],
        "n": 1,
    }


@pytest.mark.asyncio
async def test_corrupt_compressed_body_raises_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    provider = _provider(handler)
    with pytest.raises(GatewayDecodeError):
        await provider.generate([Content.from_text("user", "hi")])


@pytest.mark.asyncio
async def test_redirect_loop_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(307, headers={"Location": "https://example.test/elsewhere"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    provider = GeminiProvider(GeminiConfig(api_key="k"), client=client)
    with pytest.raises(GatewayTransportError):
        await provider.generate([Content.from_text("user", "hi")])


@pytest.mark.asyncio
async def test_corrupt_body_gives_apology_instead_of_crashing_the_turn() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    assistant = AssistantLoop(gateway=_provider(handler))

    response = await assistant.process_input("hello")

    assert response.text == ERROR_TEXT
    assert response.title == "Error"
    assert not assistant.is_processing


@pytest.mark.asyncio
async def test_blocked_prompt_surfaces_as_refusal_through_the_loop() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    assistant = AssistantLoop(gateway=_provider(handler))

    response = await assistant.process_input("something unsafe")

    assert response.text == ERROR_TEXT
    assert response.safety.refusal is True
    assert response.safety.refusal_reason == "SAFETY"
