"""Environment-based configuration using pydantic-settings.

Every field can be set with a ``CLIBROWSE_`` prefixed environment variable
or in a ``.env`` file; command-line options override both.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FACTORY = "clibrowse.example:new_command"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CLIBROWSE_", case_sensitive=False, extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Application log level")
    log_format: str = Field(default="text", description="Log format: json or text")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=0, le=65535)
    title: str = Field(default="clibrowse", description="Heading shown on every page")

    # Command tree
    factory: str = Field(
        default=DEFAULT_FACTORY,
        description="'package.module:attribute' of a click command or a function returning one",
    )
    execute_timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds before a web execution is abandoned"
    )

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return value
