"""Configuration management."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatchPreset(str, Enum):
    """Named group-size presets for the call sites of the batch executor."""

    GENERIC = "generic"  # Coverage packs and plain prompt lists
    BEAT = "beat"  # Storyboard beats generated together
    RETRY = "retry"  # Re-driving previously failed items
    VARIANT = "variant"  # Creative variants of a single beat


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STUDIO_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "coverage-studio"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    # Batch presets
    batch_group_size: int = Field(default=10, ge=1)
    beat_group_size: int = Field(default=3, ge=1)
    retry_group_size: int = Field(default=5, ge=1)
    variant_count: int = Field(default=3, ge=1)

    # Retry policy
    max_retries: int = Field(default=2, ge=0)
    retry_delay_seconds: float = Field(default=2.0, ge=0)
    inter_group_delay_seconds: float = Field(default=1.0, ge=0)

    # Timeouts (0 disables the per-request timeout)
    request_timeout_seconds: float = Field(default=300.0, ge=0)

    # Generation
    image_backend: str = "stub"
    default_resolution: str = "4K"
    output_dir: str = "outputs/coverage"

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"

    @property
    def request_timeout(self) -> float | None:
        """Per-request timeout in seconds, or None when disabled."""
        return self.request_timeout_seconds or None

    def group_size_for(self, preset: BatchPreset) -> int:
        """Resolve a named preset to a concrete group size."""
        sizes = {
            BatchPreset.GENERIC: self.batch_group_size,
            BatchPreset.BEAT: self.beat_group_size,
            BatchPreset.RETRY: self.retry_group_size,
            BatchPreset.VARIANT: self.variant_count,
        }
        return sizes[BatchPreset(preset)]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
