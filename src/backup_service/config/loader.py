"""Configuration loader for the JSON configuration file."""

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from .schema import CONFIG_TEMPLATE, SyncConfig
from ..utils.logging import get_logger


class ConfigurationError(Exception):
    """Raised when the configuration is missing or invalid."""
    pass


class ConfigLoader:
    """Loads, validates and saves the synchronization configuration."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> SyncConfig:
        """Load configuration from a JSON file.

        Args:
            file_path: Path to configuration file

        Returns:
            Validated SyncConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        self.logger.info("Loading configuration from file", file_path=str(file_path))

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any]) -> SyncConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration data as dictionary

        Returns:
            Validated SyncConfig object
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a JSON object")

        try:
            config = SyncConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        self.logger.info(
            "Configuration loaded",
            source=config.source_root,
            target=config.target_root,
            interval_seconds=config.interval_seconds
        )

        return config

    def save_to_file(self, config: SyncConfig, file_path: Union[str, Path]):
        """Save configuration to a JSON file.

        Args:
            config: Configuration to save
            file_path: Output file path
        """
        self._write(config.to_file_dict(), Path(file_path))
        self.logger.info("Configuration saved", file_path=str(file_path))

    def write_template(self, file_path: Union[str, Path]) -> Path:
        """Write an empty configuration for the user to complete.

        Returns:
            The path written
        """
        file_path = Path(file_path)
        self._write(dict(CONFIG_TEMPLATE), file_path)
        self.logger.info("Configuration template written", file_path=str(file_path))
        return file_path

    def _write(self, data: Dict[str, Any], file_path: Path):
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e
