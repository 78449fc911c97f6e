"""Configuration manager holding the current configuration snapshot."""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .schema import SyncConfig
from .loader import ConfigLoader, ConfigurationError
from ..utils.logging import get_logger, log_execution_time


class ConfigManager:
    """Manages loading, caching and saving of the configuration file."""

    def __init__(self, config_file: Union[str, Path]):
        """Initialize configuration manager.

        Args:
            config_file: Path of the JSON configuration file
        """
        self.config_file = Path(config_file)
        self.loader = ConfigLoader()
        self.logger = get_logger(self.__class__.__name__)

        self._config: Optional[SyncConfig] = None
        self._config_loaded_at: Optional[datetime] = None

    @log_execution_time
    def load_config(self, force_reload: bool = False) -> SyncConfig:
        """Load configuration from file.

        A missing file is replaced by a template so the user has something to
        edit; the call still fails because the template is not a valid config.

        Args:
            force_reload: Force reload even if config is already loaded

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        if self._config and not force_reload:
            return self._config

        if not self.config_file.exists():
            self.loader.write_template(self.config_file)
            self.logger.error(
                "No configuration found, fill in the template and restart",
                config_file=str(self.config_file)
            )
            raise ConfigurationError(f"Configuration file not found: {self.config_file}")

        try:
            self._config = self.loader.load_from_file(self.config_file)
        except ConfigurationError as e:
            self.logger.error(
                "Failed to load configuration",
                config_file=str(self.config_file),
                error=str(e)
            )
            raise

        self._config_loaded_at = datetime.now()
        return self._config

    def save_config(self, config: SyncConfig):
        """Persist a validated configuration and make it the current one."""
        self.loader.save_to_file(config, self.config_file)
        self._config = config
        self._config_loaded_at = datetime.now()

    def reload_config(self) -> SyncConfig:
        """Reload configuration from file.

        Returns:
            Reloaded configuration
        """
        return self.load_config(force_reload=True)

    def get_config(self) -> SyncConfig:
        """Get current configuration.

        Returns:
            Current configuration (loads if not already loaded)
        """
        return self.load_config()

    @property
    def loaded_at(self) -> Optional[datetime]:
        return self._config_loaded_at
