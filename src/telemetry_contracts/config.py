"""
This module defines the configuration settings for telemetry sanitization and
envelope serialization.

It uses Pydantic's `BaseSettings` to create a strongly-typed settings object that
can be populated from environment variables. The limits mirror the constraints
enforced by the ingestion endpoint, so items that pass `sanitize()` are accepted
as-is by the backend.
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelemetrySettings(BaseSettings):
    """
    Configuration model for the telemetry data contracts.

    Every field can be overridden with an environment variable carrying the
    ``TELEMETRY_CONTRACTS_`` prefix, e.g. ``TELEMETRY_CONTRACTS_MAX_URL_LENGTH``.

    Attributes:
        max_name_length: Maximum length of item names and ids.
        max_key_length: Maximum length of property and measurement keys.
        max_value_length: Maximum length of property values.
        max_url_length: Maximum length of request urls.
        max_data_length: Maximum length of dependency data (command text).
        instrumentation_key: Default ``iKey`` written on serialized envelopes.
        log_level: Root log level applied by `configure_logging()`.
        log_format: Log record format; the package default when unset.
    """

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_CONTRACTS_", extra="ignore")

    # Sanitization limits
    max_name_length: int = Field(default=1024, ge=1)
    max_key_length: int = Field(default=150, ge=4)
    max_value_length: int = Field(default=8192, ge=1)
    max_url_length: int = Field(default=2048, ge=1)
    max_data_length: int = Field(default=8192, ge=1)

    # Envelope defaults
    instrumentation_key: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: Optional[str] = None


_SETTINGS: Optional[TelemetrySettings] = None


def get_settings() -> TelemetrySettings:
    """Return the process-wide settings, loading them from the environment once."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = TelemetrySettings()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next `get_settings()` re-reads the environment."""
    global _SETTINGS
    _SETTINGS = None


__all__ = ["TelemetrySettings", "get_settings", "reset_settings"]
