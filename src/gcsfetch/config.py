"""
gcsfetch settings (pydantic-settings).

All values can be overridden with GCSFETCH_* environment variables:

    GCSFETCH_CHUNK_SIZE=4194304
    GCSFETCH_MAX_WORKERS=4
    GCSFETCH_TIMEOUT=300
    GCSFETCH_ATOMIC_WRITES=false
    GCSFETCH_PROJECT=my-project
    GCSFETCH_LOG_LEVEL=DEBUG
    GCSFETCH_LOG_JSON=true
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetchSettings(BaseSettings):
    """Process-wide fetch configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GCSFETCH_",
        extra="ignore",
    )

    # Transfer
    chunk_size: int = Field(
        default=1024 * 1024,
        ge=1024,
        le=64 * 1024 * 1024,
        description="Bytes read per chunk during copy",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Concurrent object transfers in directory mode (1 = sequential)",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Deadline for a whole fetch in seconds",
    )
    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary file and rename on success",
    )

    # Backend
    project: str | None = Field(
        default=None,
        description="GCP project used by the storage client",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False


_settings: FetchSettings | None = None


def get_settings() -> FetchSettings:
    """Get the settings singleton, loading it from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = FetchSettings()
    return _settings


def configure_settings(**overrides: Any) -> FetchSettings:
    """
    Replace the settings singleton with one built from overrides.

    Example:
        >>> configure_settings(max_workers=4, atomic_writes=False)
    """
    global _settings
    _settings = FetchSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the settings singleton (next get_settings() reloads)."""
    global _settings
    _settings = None


__all__ = [
    "FetchSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
]
