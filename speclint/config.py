from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LinterSettings(BaseSettings):
    """Linter configuration."""

    ignore_extension: str = "x-speclint-ignore"
    disabled_rules: list[str] = Field(default_factory=list)
    min_severity: Literal["MUST", "SHOULD", "MAY", "HINT"] = "HINT"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    structured_logging: bool = False

    model_config = SettingsConfigDict(env_prefix="SPECLINT_", env_file=None)


@lru_cache(maxsize=1)
def get_settings() -> LinterSettings:
    settings = LinterSettings()
    if not settings.ignore_extension.startswith("x-"):
        raise ValueError("SPECLINT_IGNORE_EXTENSION must be a vendor extension name starting with 'x-'")
    return settings
