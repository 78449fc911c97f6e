"""Configuration package for the backup service."""

from .settings import (
    AppSettings,
    LoggingSettings,
    get_settings,
    reset_settings
)

from .schema import (
    SyncConfig,
    CONFIG_TEMPLATE,
    normalize_root
)

from .loader import (
    ConfigLoader,
    ConfigurationError
)

from .manager import ConfigManager

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",

    "SyncConfig",
    "CONFIG_TEMPLATE",
    "normalize_root",

    "ConfigLoader",
    "ConfigurationError",

    "ConfigManager"
]
