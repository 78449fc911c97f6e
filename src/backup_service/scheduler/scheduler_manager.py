"""Scheduler manager: owns the running scheduler and swaps it on config changes."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .job_scheduler import CycleResult, PresentationSlot, SchedulerError, SyncScheduler
from ..config import ConfigManager, SyncConfig
from ..core import IgnoreStore, SyncEngine, SyncPresenter
from ..utils.logging import get_logger, log_execution_time


class SchedulerManager:
    """High-level manager for the synchronization scheduler.

    A configuration is immutable for the lifetime of one scheduler; applying
    a new one disposes of the running scheduler and starts a fresh one. The
    presentation slot outlives the schedulers so a presentation still open
    from a replaced scheduler keeps blocking new ones.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        presenter: SyncPresenter,
        ignore_store: Optional[IgnoreStore] = None
    ):
        """Initialize scheduler manager.

        Args:
            config_manager: Source of the configuration snapshot
            presenter: Collaborator asked to approve pending actions
            ignore_store: Ignore list read at the start of every cycle
        """
        self.config_manager = config_manager
        self.presenter = presenter
        self.ignore_store = ignore_store
        self.presentation_slot = PresentationSlot()
        self.logger = get_logger(self.__class__.__name__)

        self.sync_scheduler: Optional[SyncScheduler] = None
        self.start_time: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self.sync_scheduler is not None and self.sync_scheduler.is_running

    @log_execution_time
    async def start(self):
        """Load the configuration and start synchronizing."""
        if self.is_running:
            self.logger.warning("Scheduler manager is already running")
            return

        config = self.config_manager.get_config()
        await self.apply_config(config)
        self.start_time = datetime.now(timezone.utc)

    async def stop(self, wait: bool = True):
        """Stop the running scheduler, if any."""
        if self.sync_scheduler is None:
            self.logger.warning("Scheduler manager is not running")
            return

        scheduler, self.sync_scheduler = self.sync_scheduler, None
        await scheduler.stop(wait=wait)
        self.logger.info("Scheduler manager stopped")

    async def apply_config(self, config: SyncConfig):
        """Replace the running scheduler with one using ``config``."""
        if self.sync_scheduler is not None:
            # An open presentation must not hold up the swap
            await self.stop(wait=False)

        engine = SyncEngine(config, ignore_store=self.ignore_store)
        scheduler = SyncScheduler(
            engine=engine,
            presenter=self.presenter,
            presentation_slot=self.presentation_slot
        )

        try:
            await scheduler.start()
        except SchedulerError:
            await scheduler.stop(wait=False)
            raise

        self.sync_scheduler = scheduler
        self.logger.info(
            "Configuration applied",
            source=config.source_root,
            target=config.target_root,
            interval_seconds=config.interval_seconds,
            auto_start=config.auto_start
        )

    @log_execution_time
    async def reload_configuration(self):
        """Re-read the configuration file and restart with it."""
        try:
            config = self.config_manager.reload_config()
        except Exception as e:
            self.logger.error("Failed to reload configuration", error=str(e))
            raise SchedulerError(f"Failed to reload configuration: {e}") from e

        await self.apply_config(config)

    async def trigger_sync(self) -> CycleResult:
        """Run one cycle now, outside the timer."""
        if self.sync_scheduler is None:
            raise SchedulerError("Scheduler manager is not running")

        self.logger.info("Manually triggering sync")
        return await self.sync_scheduler.run_cycle()

    def get_status(self) -> Dict[str, Any]:
        """Manager and scheduler status."""
        uptime = None
        if self.start_time:
            uptime = (datetime.now(timezone.utc) - self.start_time).total_seconds()

        return {
            "is_running": self.is_running,
            "start_time": self.start_time,
            "uptime_seconds": uptime,
            "presentation_open": self.presentation_slot.is_taken,
            "scheduler": self.sync_scheduler.get_status() if self.sync_scheduler else None
        }
