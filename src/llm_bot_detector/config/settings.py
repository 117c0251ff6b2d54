"""
Application settings and configuration management.

Supports loading from:
1. YAML config files, optionally SOPS-encrypted (config.enc.yaml)
2. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ConfigurationError
from .constants import (
    DEFAULT_COLLECTOR_URL,
    DEFAULT_FILTERS_DIR,
    DEFAULT_MAX_PENDING_EVENTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class Settings:
    """Settings for request detection and event collection."""

    # Collector Settings
    api_key: str = ""
    collector_url: str = DEFAULT_COLLECTOR_URL
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS

    # Filter Settings
    filters_dir: str = DEFAULT_FILTERS_DIR

    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        """True when a non-blank collector API key is configured."""
        return bool(self.api_key and self.api_key.strip())

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if not self.has_api_key:
            errors.append("collector.api_key is required")

        if not self.collector_url.startswith(("http://", "https://")):
            errors.append(
                f"collector.url must be an http(s) URL, got {self.collector_url!r}"
            )
        if self.request_timeout_seconds <= 0:
            errors.append(
                f"collector.timeout_seconds must be > 0, "
                f"got {self.request_timeout_seconds}"
            )
        if self.max_pending_events < 1:
            errors.append(
                f"collector.max_pending_events must be >= 1, "
                f"got {self.max_pending_events}"
            )
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization. The API key is masked."""
        return {
            "api_key": "***" if self.has_api_key else "",
            "collector_url": self.collector_url,
            "request_timeout_seconds": self.request_timeout_seconds,
            "max_pending_events": self.max_pending_events,
            "filters_dir": self.filters_dir,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from SOPS)."""
        collector = config.get("collector", {}) or {}
        filters = config.get("filters", {}) or {}

        return cls(
            api_key=collector.get("api_key", "") or "",
            collector_url=collector.get("url", DEFAULT_COLLECTOR_URL),
            request_timeout_seconds=float(
                collector.get("timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
            ),
            max_pending_events=int(
                collector.get("max_pending_events", DEFAULT_MAX_PENDING_EVENTS)
            ),
            filters_dir=filters.get("directory", DEFAULT_FILTERS_DIR),
            log_level=config.get("log_level", "INFO"),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""

        def safe_int(key: str, default: int) -> int:
            """Safely parse int from env var, using default on error."""
            try:
                return int(os.environ.get(key, str(default)))
            except ValueError:
                return default

        def safe_float(key: str, default: float) -> float:
            """Safely parse float from env var, using default on error."""
            try:
                return float(os.environ.get(key, str(default)))
            except ValueError:
                return default

        return cls(
            api_key=os.environ.get("DOPPLER_API_KEY", ""),
            collector_url=os.environ.get("DOPPLER_COLLECTOR_URL", DEFAULT_COLLECTOR_URL),
            request_timeout_seconds=safe_float(
                "DOPPLER_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            max_pending_events=safe_int(
                "DOPPLER_MAX_PENDING_EVENTS", DEFAULT_MAX_PENDING_EVENTS
            ),
            filters_dir=os.environ.get("DOPPLER_FILTERS_DIR", DEFAULT_FILTERS_DIR),
            log_level=os.environ.get("DOPPLER_LOG_LEVEL", "INFO"),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from the config file if available, otherwise from env vars.

    Args:
        config_path: Optional path to a (possibly SOPS-encrypted) YAML file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import load_config

            return Settings.from_dict(load_config(path))
        except (ConfigurationError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
