"""Configuration module for bubblekit."""

from bubblekit.config.loader import get_config_path, load_config, save_config
from bubblekit.config.schema import Config, GeminiConfig

__all__ = ["Config", "GeminiConfig", "get_config_path", "load_config", "save_config"]
