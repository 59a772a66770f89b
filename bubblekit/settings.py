"""Runtime settings for bubblekit, loaded from env / .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BubbleKitSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BUBBLEKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- logging ---
    log_level: str = "INFO"
    log_file: Path | None = None

    # --- file-system paths ---
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".bubblekit")

    @property
    def config_path(self) -> Path:
        return self.state_dir / "config.json"


@lru_cache
def get_settings() -> BubbleKitSettings:
    return BubbleKitSettings()
