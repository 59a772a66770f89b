"""
bubblekit - embeddable chat assistant with tool calling and app navigation.
"""

from __future__ import annotations

from typing import Iterable

import httpx
from loguru import logger

from bubblekit.agent import (
    AppIntent,
    AssistantLoop,
    AssistantResponse,
    IntentHandling,
    ToolRegistry,
)
from bubblekit.config import Config, load_config
from bubblekit.config.schema import HostContext, VoiceMode
from bubblekit.providers import GatewayError, GeminiProvider

__version__ = "0.1.0"

# Library code stays quiet until the host calls utils.setup_logging().
logger.disable("bubblekit")


def create_default_configuration(
    app_name: str,
    app_version: str,
    user_id: str,
    voice_enabled: bool = False,
    api_key: str = "",
) -> Config:
    """Default configuration for a host app, with optional voice and Gemini key."""
    config = Config(
        host_context=HostContext(app_name=app_name, app_version=app_version, user_id=user_id),
        voice_mode=VoiceMode(enabled=voice_enabled),
    )
    if api_key:
        config.gemini.api_key = api_key
    return config


def create_assistant(
    config: Config | None = None,
    intents: Iterable[AppIntent] = (),
    intent_handler: IntentHandling | None = None,
    tools: ToolRegistry | None = None,
    client: httpx.AsyncClient | None = None,
) -> AssistantLoop:
    """
    Build a ready-to-use assistant.

    Without ``config`` the JSON config file and environment are read. A
    Gemini gateway is attached only when an API key is configured;
    otherwise the assistant answers offline.
    """
    config = config or load_config()
    assistant = AssistantLoop(config=config, tools=tools, intent_handler=intent_handler)
    assistant.register_intents(intents)

    if config.gemini.api_key:
        gemini = config.gemini.model_copy(
            update={"system_instruction": config.build_system_instruction()},
        )
        assistant.attach_gateway(GeminiProvider(gemini, client=client))
    else:
        logger.info("No Gemini API key configured, running offline")

    return assistant


__all__ = [
    "AppIntent",
    "AssistantLoop",
    "AssistantResponse",
    "Config",
    "GatewayError",
    "ToolRegistry",
    "__version__",
    "create_assistant",
    "create_default_configuration",
]
