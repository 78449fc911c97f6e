"""Scheduler package for running synchronization cycles."""

from .job_scheduler import (
    SyncScheduler,
    SchedulerError,
    SchedulerState,
    CycleOutcome,
    CycleResult,
    PresentationSlot
)
from .scheduler_manager import SchedulerManager

__all__ = [
    "SyncScheduler",
    "SchedulerError",
    "SchedulerState",
    "CycleOutcome",
    "CycleResult",
    "PresentationSlot",
    "SchedulerManager"
]
