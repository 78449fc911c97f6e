"""Application settings."""

import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


COMPANY_NAME = "AZDev"
APP_NAME = "Backup_Service"


def default_data_dir() -> Path:
    """Per-user application data directory."""
    if sys.platform == "win32":
        base = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / COMPANY_NAME / APP_NAME

    base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "backup-service"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file_name: Optional[str] = Field(default="backup_service.log")

    model_config = SettingsConfigDict(env_prefix="BACKUP_SERVICE_LOG_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        if v.lower() not in ("console", "json"):
            raise ValueError("Log format must be 'console' or 'json'")
        return v.lower()


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="Backup Service")
    version: str = Field(default="1.0.0")

    data_dir: Path = Field(default_factory=default_data_dir)
    config_file_name: str = Field(default="config.json")
    ignore_file_name: str = Field(default="ignored_files.json")

    # "console" asks on the terminal, "auto" approves every pending action
    presenter: str = Field(default="console")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("presenter")
    @classmethod
    def validate_presenter(cls, v):
        if v.lower() not in ("console", "auto"):
            raise ValueError("Presenter must be 'console' or 'auto'")
        return v.lower()

    @property
    def config_path(self) -> Path:
        return self.data_dir / self.config_file_name

    @property
    def ignore_list_path(self) -> Path:
        return self.data_dir / self.ignore_file_name


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get application settings."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
