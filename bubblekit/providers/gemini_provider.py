"""Gemini ``models.generateContent`` REST client."""

from __future__ import annotations

from types import TracebackType

import httpx
from loguru import logger
from pydantic import ValidationError

from bubblekit.config.schema import GeminiConfig
from bubblekit.providers.base import (
    Content,
    GatewayBlockedError,
    GatewayDecodeError,
    GatewayHTTPError,
    GatewayNoCandidatesError,
    GatewayTransportError,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    SafetySetting,
    Tool,
    ToolConfig,
)


class GeminiProvider:
    """
    Stateless wire client for Gemini.

    One ``generate()`` call is exactly one HTTP POST: no retries, no caching.
    The system instruction and safety settings come from ``GeminiConfig`` and
    are attached to every request.
    """

    def __init__(
        self,
        config: GeminiConfig,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        base = self.config.base_url.rstrip("/")
        return f"{base}/{self.config.model}:generateContent"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    def build_request(
        self,
        contents: list[Content],
        tools: list[Tool] | None = None,
        tool_config: ToolConfig | None = None,
        generation: GenerationConfig | None = None,
    ) -> GenerateContentRequest:
        """Assemble the request body, validating tool name uniqueness."""
        if tools:
            seen: set[str] = set()
            for tool in tools:
                for decl in tool.function_declarations or []:
                    if decl.name in seen:
                        raise ValueError(f"duplicate function declaration: {decl.name}")
                    seen.add(decl.name)

        system = None
        if self.config.system_instruction:
            system = Content.from_text("system", self.config.system_instruction)

        return GenerateContentRequest(
            contents=contents,
            tools=tools or None,
            tool_config=tool_config,
            safety_settings=[
                SafetySetting(category=s.category, threshold=s.threshold)
                for s in self.config.safety
            ] or None,
            system_instruction=system,
            generation_config=generation,
        )

    async def generate(
        self,
        contents: list[Content],
        tools: list[Tool] | None = None,
        tool_config: ToolConfig | None = None,
        generation: GenerationConfig | None = None,
    ) -> GenerateContentResponse:
        """
        Send one generateContent request.

        Raises:
            GatewayTransportError: connection, timeout, redirect or other request failure.
            GatewayHTTPError: non-2xx status.
            GatewayDecodeError: body could not be decompressed or is not a valid response document.
            GatewayBlockedError: ``promptFeedback.blockReason`` is set.
            GatewayNoCandidatesError: no candidates returned.
        """
        body = self.build_request(contents, tools, tool_config, generation).to_wire()
        client = self._get_client()

        try:
            resp = await client.post(
                self.endpoint,
                params={"key": self.config.api_key},
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.config.timeout_seconds,
            )
        except httpx.DecodingError as e:
            logger.error(f"Gemini response body could not be decoded ({self.config.model}): {e!r}")
            raise GatewayDecodeError(str(e) or type(e).__name__) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed ({self.config.model}): {e!r}")
            raise GatewayTransportError(str(e) or type(e).__name__) from e

        if resp.status_code >= 300:
            logger.warning(f"Gemini returned HTTP {resp.status_code}")
            raise GatewayHTTPError(resp.status_code, resp.text)

        return self._parse_response(resp.content)

    @staticmethod
    def _parse_response(raw: bytes) -> GenerateContentResponse:
        try:
            decoded = GenerateContentResponse.model_validate_json(raw)
        except ValidationError as e:
            raise GatewayDecodeError(str(e)) from e

        feedback = decoded.prompt_feedback
        if feedback is not None and feedback.block_reason:
            logger.info(f"Gemini blocked prompt: {feedback.block_reason}")
            raise GatewayBlockedError(feedback.block_reason)
        if not decoded.candidates:
            raise GatewayNoCandidatesError()
        return decoded

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GeminiProvider:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
