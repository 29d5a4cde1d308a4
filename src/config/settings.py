# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for backend access, batch pacing, notification
timing and logging. Every field can be set with a BULKOPS_ prefixed
environment variable (e.g. BULKOPS_INTER_ITEM_DELAY_MS=500).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bulkops.core.errors import BulkOpsError


class ConfigurationError(BulkOpsError):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_prefix="BULKOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Backend ===
    api_base_url: str = "http://localhost:3000"
    api_token: str = ""
    api_timeout_s: float = 30.0
    user_id: int | None = None

    # === Batch pacing ===
    inter_item_delay_ms: int = 300
    result_display_ms: int = 5000

    # === Notifications ===
    notification_ttl_ms: int = 5000

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("inter_item_delay_ms", "result_display_ms", "notification_ttl_ms")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("delays and ttls must be >= 0")
        return v

    @field_validator("api_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("api_timeout_s must be > 0")
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field consistency rules."""
        errors: list[str] = []

        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append("API_BASE_URL must be an http(s) URL")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        # Result badge must outlive its toast; 0 disables the reset timer.
        if self.result_display_ms and self.result_display_ms < self.notification_ttl_ms:
            errors.append("RESULT_DISPLAY_MS must be >= NOTIFICATION_TTL_MS")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def inter_item_delay_s(self) -> float:
        return self.inter_item_delay_ms / 1000.0

    @property
    def result_display_s(self) -> float:
        return self.result_display_ms / 1000.0


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-command config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
