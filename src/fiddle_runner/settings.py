"""
Runner configuration

Loaded from FIDDLE_* environment variables (or a .env file) with pydantic-settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PLACEHOLDER = "<env_id>"
DEFAULT_CHANNEL_FILE = "shared.json"


class Settings(BaseSettings):
    """Runner settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FIDDLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============== Environments ==============
    environment_root: Path = Field(
        default=Path("/tmp/fiddle-environments"),
        description="Directory under which one sandbox directory per run is created",
    )
    channel_file: str = Field(
        default=DEFAULT_CHANNEL_FILE,
        description="Shared channel file name, relative to the environment directory",
    )

    # ============== Worker ==============
    command: str = Field(
        default=f"fiddle-worker {DEFAULT_PLACEHOLDER}",
        description="Worker command line, the placeholder is replaced by the environment id",
    )
    env_id_placeholder: str = Field(default=DEFAULT_PLACEHOLDER, min_length=1)
    worker_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Kill the worker after this many seconds (disabled when unset)",
    )

    # ============== Logging ==============
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="text for human-readable output, json for structured logs",
    )

    @field_validator("channel_file")
    @classmethod
    def _channel_file_is_bare_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("channel_file must be a plain file name")
        return value

    @model_validator(mode="after")
    def _command_has_placeholder(self) -> "Settings":
        if self.env_id_placeholder not in self.command:
            raise ValueError(
                f"command must contain the {self.env_id_placeholder} placeholder"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
