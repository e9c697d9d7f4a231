"""Configuration module."""

from polywatch.config.settings import (
    ApiConfig,
    DatabaseConfig,
    Settings,
    UpstreamConfig,
    load_settings,
)

__all__ = ["ApiConfig", "DatabaseConfig", "Settings", "UpstreamConfig", "load_settings"]
