# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for limits, collaborator endpoints, resolution
timeouts and logging. Every field maps to an upper-case environment
variable of the same name (e.g. MAX_BATCH_LINKS).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Creation endpoint ===
    api_base_url: str = "http://localhost:8000/api"
    api_token: str = ""
    api_timeout_s: float = 60.0

    # === Batch limits ===
    max_batch_links: int = 50
    max_batch_files: int = 20
    max_file_size_mb: int = 500

    # === Metadata resolution ===
    resolve_timeout_s: float = 8.0
    folder_preview_max_depth: int = 3
    youtube_thumbnail_quality: Literal[
        "maxresdefault", "hqdefault", "mqdefault", "default"
    ] = "maxresdefault"
    youtube_oembed_url: str = "https://www.youtube.com/oembed"
    gdrive_api_base_url: str = "https://www.googleapis.com/drive/v3"
    gdrive_api_keys: str = ""
    gdrive_thumbnail_size: str = "w400-h300"
    lookup_max_retries: int = 1

    # === Local thumbnails ===
    thumbnail_scale: float = 0.5
    thumbnail_jpeg_quality: int = 70

    # === Submission defaults ===
    default_visibility: Literal["public", "private"] = "public"
    default_restriction: Literal["downloadable", "readonly"] = "downloadable"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("max_batch_links", "max_batch_files", "max_file_size_mb")
    @classmethod
    def validate_positive_limit(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("batch limits must be >= 1")
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.resolve_timeout_s <= 0:
            errors.append("RESOLVE_TIMEOUT_S must be > 0")

        if self.api_timeout_s <= 0:
            errors.append("API_TIMEOUT_S must be > 0")

        if self.folder_preview_max_depth < 0:
            errors.append("FOLDER_PREVIEW_MAX_DEPTH must be >= 0")

        if not 0 < self.thumbnail_scale <= 4:
            errors.append("THUMBNAIL_SCALE must be in (0, 4]")

        if not 1 <= self.thumbnail_jpeg_quality <= 100:
            errors.append("THUMBNAIL_JPEG_QUALITY must be in [1, 100]")

        if self.lookup_max_retries < 0:
            errors.append("LOOKUP_MAX_RETRIES must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def gdrive_api_keys_list(self) -> list[str]:
        """Parse comma-separated Google Drive API keys."""
        return [k.strip() for k in self.gdrive_api_keys.split(",") if k.strip()]

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-batch config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
