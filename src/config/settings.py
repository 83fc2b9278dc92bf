# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where the step API
lives, how the pipeline logs, where articles are stored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Step API ===
    step_api_base_url: str = ""
    step_timeout_s: float = 300.0

    # === Pipeline ===
    min_aggregate_article_chars: int = 100
    pricing_file: Path | None = None

    # === Notifications ===
    notifications_enabled: bool = False
    app_base_url: str = ""
    notify_email: str = ""
    notify_name: str = "User"

    # === Storage ===
    database_path: Path = Path("~/.newsforge/articles.db")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # === Pipeline logs (one file per run) ===
    pipeline_log_dir: Path = Path("logs")
    pipeline_file_logging: bool = True

    # --- Validators ---

    @field_validator("step_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("step_timeout_s must be > 0")
        return v

    @field_validator("min_aggregate_article_chars")
    @classmethod
    def validate_min_chars(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("min_aggregate_article_chars must be >= 0")
        return v

    @field_validator("step_api_base_url", "app_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.strip().rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.notifications_enabled and not self.app_base_url:
            errors.append("NOTIFICATIONS_ENABLED requires APP_BASE_URL")

        if errors:
            raise ConfigurationError("; ".join(errors))

        if not self.step_api_base_url:
            logger.warning(
                "STEP_API_BASE_URL is not set; every step call will fail"
            )

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
