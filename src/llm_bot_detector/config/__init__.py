"""Configuration module."""

from .constants import (
    AGENT_CATALOG,
    DEFAULT_COLLECTOR_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    KNOWN_AGENT_NAMES,
    NO_CACHE_HEADER_VALUE,
)
from .settings import Settings, clear_settings_cache, get_settings
from .sops_loader import (
    check_sops_installed,
    decrypt_sops_file,
    load_config,
    load_yaml_config,
)

__all__ = [
    # Agent catalog
    "AGENT_CATALOG",
    "KNOWN_AGENT_NAMES",
    # Collector
    "DEFAULT_COLLECTOR_URL",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "NO_CACHE_HEADER_VALUE",
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "load_config",
    "load_yaml_config",
    "decrypt_sops_file",
    "check_sops_installed",
]
