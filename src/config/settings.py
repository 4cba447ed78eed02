# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: the fingerprint
cache flag and directory, the fpcalc binary and timeouts, and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from introfp.cache.models import CacheConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Fingerprint cache ===
    cache_fingerprints: bool = True
    fingerprint_cache_root: Path = Path("~/.introfp/cache")

    # === fpcalc ===
    fpcalc_binary: str = "fpcalc"
    fpcalc_timeout_ms: int = 60_000
    fpcalc_probe_timeout_ms: int = 2_000

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("fpcalc_timeout_ms", "fpcalc_probe_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:  # noqa: N805
        """Timeouts must be positive."""
        if v <= 0:
            raise ValueError("timeout must be > 0 ms")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        if self.fpcalc_probe_timeout_ms > self.fpcalc_timeout_ms:
            raise ConfigurationError(
                "FPCALC_PROBE_TIMEOUT_MS must be <= FPCALC_TIMEOUT_MS"
            )
        return self

    # --- Helpers ---

    def cache_config(self) -> CacheConfig:
        """Snapshot of the cache flag and directory."""
        return CacheConfig(
            enabled=self.cache_fingerprints,
            root=self.fingerprint_cache_root,
        )


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


def settings_cache_config() -> CacheConfig:
    """CacheConfigProvider that re-reads the environment on every call."""
    return load_settings().cache_config()
