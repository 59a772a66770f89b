"""Configuration loading utilities."""

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from bubblekit.config.schema import Config
from bubblekit.settings import get_settings

# Load .env into os.environ (won't overwrite existing env vars)
load_dotenv(override=False)


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return get_settings().config_path


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, then apply env-var overrides.

    Priority (highest → lowest):
        1. BUBBLEKIT_* environment variables / .env
        2. ~/.bubblekit/config.json (camelCase keys)
        3. Built-in defaults
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            config = Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load config from {path}: {e}; using defaults")
            config = Config()
    else:
        config = Config()

    _apply_env_overrides(config)
    return config


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: Config) -> None:
    """Apply flat BUBBLEKIT_* env vars on top of the loaded config."""

    # --- Gemini ---
    if val := os.environ.get("BUBBLEKIT_GEMINI_API_KEY"):
        config.gemini.api_key = val
    if val := os.environ.get("BUBBLEKIT_GEMINI_MODEL"):
        config.gemini.model = val
    if val := os.environ.get("BUBBLEKIT_GEMINI_BASE_URL"):
        config.gemini.base_url = val
    if val := os.environ.get("BUBBLEKIT_SYSTEM_INSTRUCTION"):
        config.gemini.system_instruction = val
    if val := os.environ.get("BUBBLEKIT_REQUEST_TIMEOUT"):
        config.gemini.timeout_seconds = float(val)

    # --- Host context ---
    if val := os.environ.get("BUBBLEKIT_APP_NAME"):
        config.host_context.app_name = val
    if val := os.environ.get("BUBBLEKIT_APP_VERSION"):
        config.host_context.app_version = val
    if val := os.environ.get("BUBBLEKIT_USER_ID"):
        config.host_context.user_id = val

    # --- Voice ---
    if val := os.environ.get("BUBBLEKIT_VOICE_ENABLED"):
        config.voice_mode.enabled = _env_flag(val)


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Convert to camelCase format
    data = config.model_dump(mode="json")
    data = convert_to_camel(data)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
