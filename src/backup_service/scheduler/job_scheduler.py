"""Recurring synchronization cycles for one source/target pair."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, EVENT_JOB_MAX_INSTANCES

from ..core import DirectoryUnavailable, PendingAction, SyncEngine, SyncPresenter
from ..utils.logging import get_logger, log_execution_time


SYNC_JOB_ID = "sync_cycle"


class SchedulerError(Exception):
    """Raised when scheduler operations fail."""
    pass


class SchedulerState(str, Enum):
    """Where a scheduler is within its cycle."""
    IDLE = "idle"
    SCANNING = "scanning"
    PRESENTING = "presenting"
    EXECUTING = "executing"


class CycleOutcome(str, Enum):
    """How a cycle ended."""
    COMPLETED = "completed"
    NO_CHANGES = "no_changes"
    SKIPPED_BUSY = "skipped_busy"
    SKIPPED_PRESENTATION_OPEN = "skipped_presentation_open"
    TARGET_UNAVAILABLE = "target_unavailable"
    DIRECTORY_UNAVAILABLE = "directory_unavailable"
    FAILED = "failed"


@dataclass
class CycleResult:
    """Result of one scan, present and execute pass."""

    outcome: CycleOutcome
    actions_found: int = 0
    actions_ignored: int = 0
    actions_approved: int = 0
    files_copied: int = 0
    files_failed: int = 0
    error_message: Optional[str] = None
    duration: Optional[float] = None


class PresentationSlot:
    """Single-slot token: at most one presentation open at a time.

    Shared by every scheduler of a process, including a scheduler replaced
    after a configuration change whose presentation is still open.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Take the slot if it is free; never blocks."""
        return self._lock.acquire(blocking=False)

    def release(self):
        if self._lock.locked():
            self._lock.release()

    @property
    def is_taken(self) -> bool:
        return self._lock.locked()


class SyncScheduler:
    """Runs synchronization cycles on a fixed interval.

    Each cycle goes IDLE -> SCANNING -> PRESENTING -> EXECUTING -> IDLE.
    Scanning and copying run on a single worker thread, the presenter on its
    own daemon thread, so the event loop driving the timer never blocks. A tick
    arriving while a cycle is still running is dropped, never queued.
    """

    def __init__(
        self,
        engine: SyncEngine,
        presenter: SyncPresenter,
        presentation_slot: Optional[PresentationSlot] = None
    ):
        """Initialize the scheduler.

        Args:
            engine: Engine bound to the configuration snapshot of this run
            presenter: Collaborator asking which actions to execute
            presentation_slot: Token shared across schedulers; a private one if omitted
        """
        self.engine = engine
        self.presenter = presenter
        self.presentation_slot = presentation_slot or PresentationSlot()
        self.interval_seconds = engine.config.interval_seconds
        self.logger = get_logger(self.__class__.__name__)

        self.scheduler = AsyncIOScheduler(
            job_defaults={
                'coalesce': True,  # Never catch up on missed ticks
                'max_instances': 1,  # A tick during a running cycle is dropped
                'misfire_grace_time': self.interval_seconds
            }
        )
        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed, EVENT_JOB_MISSED)
        self.scheduler.add_listener(self._job_dropped, EVENT_JOB_MAX_INSTANCES)

        # Scan and copy work is serialized on one thread. The presenter gets a
        # daemon thread per presentation so an unanswered one never keeps the
        # process alive after stop().
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sync-worker")
        self._cycle_lock = asyncio.Lock()
        self._disposed = False

        self.state = SchedulerState.IDLE
        self.target_reachable: Optional[bool] = None
        self.stats: Dict[str, Any] = {
            "created_at": datetime.now(timezone.utc),
            "last_run": None,
            "run_count": 0,
            "completed_count": 0,
            "skipped_count": 0,
            "error_count": 0,
            "files_copied": 0,
            "last_result": None
        }

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    @log_execution_time
    async def start(self):
        """Start the timer; the first cycle runs immediately."""
        if self._disposed:
            raise SchedulerError("Scheduler was stopped and cannot be restarted")

        if self.scheduler.running:
            self.logger.warning("Scheduler is already running")
            return

        try:
            self.scheduler.add_job(
                func=self.run_cycle,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=SYNC_JOB_ID,
                name=f"Sync: {self.engine.source_root} <-> {self.engine.target_root}",
                next_run_time=datetime.now(timezone.utc),
                replace_existing=True
            )
            self.scheduler.start()
        except Exception as e:
            self.logger.error("Failed to start scheduler", error=str(e))
            raise SchedulerError(f"Failed to start scheduler: {e}") from e

        self.logger.info(
            "Sync service started",
            source=str(self.engine.source_root),
            target=str(self.engine.target_root),
            interval_seconds=self.interval_seconds
        )

    async def stop(self, wait: bool = True):
        """Stop the timer and dispose of the worker threads.

        Args:
            wait: Whether to wait for a running scan or copy to finish. A
                presentation waiting for the user is never waited for.
        """
        if self._disposed:
            return
        self._disposed = True

        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
        except Exception as e:
            self.logger.error("Error stopping scheduler", error=str(e))

        self._worker.shutdown(wait=wait, cancel_futures=True)

        self.logger.info("Sync service stopped")

    async def run_cycle(self) -> CycleResult:
        """Run one full cycle unless another one is in progress."""
        if self._cycle_lock.locked():
            self.logger.warning("Synchronization cycle still running, tick dropped")
            result = CycleResult(outcome=CycleOutcome.SKIPPED_BUSY)
            self._record(result)
            return result

        async with self._cycle_lock:
            result = await self._run_locked_cycle()

        self._record(result)
        return result

    async def _run_locked_cycle(self) -> CycleResult:
        loop = asyncio.get_running_loop()
        start_time = time.monotonic()
        result = CycleResult(outcome=CycleOutcome.FAILED)

        try:
            reachable = await loop.run_in_executor(self._worker, self.check_target_reachable)
            if not reachable:
                result.outcome = CycleOutcome.TARGET_UNAVAILABLE
                return result

            self._set_state(SchedulerState.SCANNING)
            detection = await loop.run_in_executor(self._worker, self.engine.find_pending_actions)
            result.actions_found = len(detection.actions)
            result.actions_ignored = detection.ignored_count

            if not detection.actions:
                result.outcome = CycleOutcome.NO_CHANGES
                return result

            if not self.presentation_slot.try_acquire():
                self.logger.info(
                    "Synchronization window already open, discarding scan result",
                    pending=len(detection.actions)
                )
                result.outcome = CycleOutcome.SKIPPED_PRESENTATION_OPEN
                return result

            try:
                self._set_state(SchedulerState.PRESENTING)
                approved = await self._present_in_background(detection.actions)
                result.actions_approved = len(approved)

                self._set_state(SchedulerState.EXECUTING)
                execution = await loop.run_in_executor(self._worker, self.engine.execute, approved)
                result.files_copied = execution.copied_count
                result.files_failed = execution.failed_count
            finally:
                self.presentation_slot.release()

            result.outcome = CycleOutcome.COMPLETED
            return result

        except DirectoryUnavailable as e:
            self.logger.warning("Synchronization skipped", path=str(e.path), error=str(e))
            result.outcome = CycleOutcome.DIRECTORY_UNAVAILABLE
            result.error_message = str(e)
            return result

        except Exception as e:
            self.logger.error("Error during synchronization check", error=str(e), exc_info=True)
            result.outcome = CycleOutcome.FAILED
            result.error_message = str(e)
            return result

        finally:
            self._set_state(SchedulerState.IDLE)
            result.duration = time.monotonic() - start_time

    def _present_in_background(self, actions: List[PendingAction]) -> "asyncio.Future[List[PendingAction]]":
        """Run the presenter on a daemon thread and resolve a future on the loop."""
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[List[PendingAction]]" = loop.create_future()

        def deliver(approved, error):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(approved)

        def run():
            approved, error = None, None
            try:
                approved = self._present(actions)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(deliver, approved, error)
            except RuntimeError:
                # Event loop already closed after shutdown
                self.logger.debug("Presentation finished after shutdown, result discarded")

        threading.Thread(target=run, name="sync-presenter", daemon=True).start()
        return future

    def _present(self, actions: List[PendingAction]) -> List[PendingAction]:
        approved = self.presenter.present(
            list(actions), self.engine.source_root, self.engine.target_root
        )
        if approved is None:
            self.logger.info("Synchronization window closed without approval")
            return []
        return list(approved)

    def check_target_reachable(self) -> bool:
        """Check the target's volume and log transitions between reachable and not."""
        reachable = self.volume_root(self.engine.target_root).is_dir()
        previous = self.target_reachable
        self.target_reachable = reachable

        if previous is None:
            if reachable:
                self.logger.info("Target directory available", target=str(self.engine.target_root))
            else:
                self.logger.warning(
                    "Target directory not available (possibly external drive not connected)",
                    target=str(self.engine.target_root)
                )
        elif previous and not reachable:
            self.logger.warning(
                "Target directory not available (possibly external drive not connected)",
                target=str(self.engine.target_root)
            )
        elif not previous and reachable:
            self.logger.info("Target directory available again", target=str(self.engine.target_root))

        return reachable

    @staticmethod
    def volume_root(target: Path) -> Path:
        """Directory that must exist for ``target`` to be reachable.

        The drive root where the path has a drive, otherwise the parent of
        the target (the mount point of a removable drive).
        """
        target = Path(target).absolute()
        if target.drive:
            return Path(target.anchor)
        return target.parent

    def get_status(self) -> Dict[str, Any]:
        """Scheduler state and run statistics."""
        status = dict(self.stats)
        job = self.scheduler.get_job(SYNC_JOB_ID) if self.scheduler.running else None
        status.update({
            "state": self.state.value,
            "is_running": self.scheduler.running,
            "interval_seconds": self.interval_seconds,
            "target_reachable": self.target_reachable,
            "presentation_open": self.presentation_slot.is_taken,
            "next_run": job.next_run_time if job else None
        })
        return status

    def _set_state(self, state: SchedulerState):
        if state != self.state:
            self.logger.debug("Scheduler state changed", previous=self.state.value, state=state.value)
            self.state = state

    def _record(self, result: CycleResult):
        stats = self.stats
        stats["last_run"] = datetime.now(timezone.utc)
        stats["run_count"] += 1
        stats["files_copied"] += result.files_copied
        stats["last_result"] = {
            "outcome": result.outcome.value,
            "actions_found": result.actions_found,
            "files_copied": result.files_copied,
            "files_failed": result.files_failed,
            "duration": result.duration,
            "error_message": result.error_message
        }

        if result.outcome in (CycleOutcome.COMPLETED, CycleOutcome.NO_CHANGES):
            stats["completed_count"] += 1
        elif result.outcome == CycleOutcome.FAILED:
            stats["error_count"] += 1
        else:
            stats["skipped_count"] += 1

    def _job_error(self, event):
        self.logger.error("Scheduled job failed", job_id=event.job_id, error=str(event.exception))

    def _job_missed(self, event):
        self.logger.warning(
            "Scheduled job missed",
            job_id=event.job_id,
            scheduled_run_time=event.scheduled_run_time
        )

    def _job_dropped(self, event):
        self.logger.warning("Synchronization cycle still running, tick dropped", job_id=event.job_id)
