"""Core synchronization engine package."""

from .exceptions import SyncEngineError, DirectoryUnavailable, IOFailure, PersistenceFailure
from .models import ActionKind, SyncDirection, PendingAction, IgnoreEntry, file_timestamp
from .scanner import DirectoryScanner
from .detector import DifferenceDetector
from .ignore import IgnoreStore, IgnoreFilter
from .executor import SyncExecutor, ExecutionResult, FailedAction
from .presenter import SyncPresenter, AutoApprovePresenter, ConsolePresenter, relative_location
from .sync_engine import SyncEngine, DetectionResult

__all__ = [
    "SyncEngineError",
    "DirectoryUnavailable",
    "IOFailure",
    "PersistenceFailure",

    "ActionKind",
    "SyncDirection",
    "PendingAction",
    "IgnoreEntry",
    "file_timestamp",

    "DirectoryScanner",
    "DifferenceDetector",
    "IgnoreStore",
    "IgnoreFilter",
    "SyncExecutor",
    "ExecutionResult",
    "FailedAction",

    "SyncPresenter",
    "AutoApprovePresenter",
    "ConsolePresenter",
    "relative_location",

    "SyncEngine",
    "DetectionResult"
]
