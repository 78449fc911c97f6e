"""Main application entry point."""

import asyncio
import signal
import sys
from typing import Optional

from .config.settings import get_settings
from .config import ConfigManager, ConfigurationError
from .core import AutoApprovePresenter, ConsolePresenter, IgnoreStore, SyncPresenter
from .scheduler import SchedulerError, SchedulerManager
from .utils.logging import setup_logging, get_logger


class BackupServiceApp:
    """Main Backup Service application."""

    def __init__(self):
        """Initialize the application."""
        self.settings = get_settings()
        self.logger = get_logger("BackupService")
        self.running = False
        self.reload_requested = False
        self.config_manager: Optional[ConfigManager] = None
        self.ignore_store: Optional[IgnoreStore] = None
        self.scheduler_manager: Optional[SchedulerManager] = None

    async def startup(self):
        """Application startup."""
        self.logger.info(
            "Starting Backup Service",
            version=self.settings.version,
            data_dir=str(self.settings.data_dir)
        )

        self.settings.data_dir.mkdir(parents=True, exist_ok=True)

        self.config_manager = ConfigManager(self.settings.config_path)
        self.config_manager.load_config()

        self.ignore_store = IgnoreStore(self.settings.ignore_list_path)
        self.scheduler_manager = SchedulerManager(
            config_manager=self.config_manager,
            presenter=self._create_presenter(),
            ignore_store=self.ignore_store
        )
        await self.scheduler_manager.start()

        self.running = True
        self.logger.info("Backup Service started successfully")

    async def shutdown(self):
        """Application shutdown."""
        self.logger.info("Shutting down Backup Service")
        self.running = False

        if self.scheduler_manager and self.scheduler_manager.is_running:
            try:
                await self.scheduler_manager.stop(wait=False)
            except SchedulerError as e:
                self.logger.error("Error stopping scheduler", error=str(e))

        self.logger.info("Backup Service stopped")

    async def run(self):
        """Run the main application loop."""
        await self.startup()

        try:
            while self.running:
                if self.reload_requested:
                    self.reload_requested = False
                    await self._reload()
                await asyncio.sleep(1)

        except KeyboardInterrupt:
            self.logger.info("Received shutdown signal")
        finally:
            await self.shutdown()

    async def _reload(self):
        self.logger.info("Reloading configuration")
        try:
            await self.scheduler_manager.reload_configuration()
        except SchedulerError as e:
            # Keep running with whatever scheduler is left
            self.logger.error("Configuration reload failed", error=str(e))

    def _create_presenter(self) -> SyncPresenter:
        if self.settings.presenter == "auto":
            return AutoApprovePresenter()
        return ConsolePresenter(ignore_store=self.ignore_store)


def setup_signal_handlers(app: BackupServiceApp):
    """Set up signal handlers for graceful shutdown and reload."""
    def shutdown_handler(signum, frame):
        app.logger.info(f"Received signal {signum}")
        app.running = False

    def reload_handler(signum, frame):
        app.logger.info(f"Received signal {signum}")
        app.reload_requested = True

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, reload_handler)


async def main():
    """Main entry point."""
    # Set up logging first
    setup_logging()

    logger = get_logger("main")
    logger.info("Initializing Backup Service application")

    app = BackupServiceApp()
    setup_signal_handlers(app)

    try:
        await app.run()
    except (ConfigurationError, OSError) as e:
        logger.error("Backup Service failed to start", error=str(e))
        raise


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        print(f"Application failed with error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
