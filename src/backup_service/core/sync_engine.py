"""Core sync engine: finds pending actions and executes approved ones."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .detector import DifferenceDetector
from .exceptions import DirectoryUnavailable, PersistenceFailure
from .executor import ExecutionResult, SyncExecutor
from .ignore import IgnoreFilter, IgnoreStore
from .models import IgnoreEntry, PendingAction
from .scanner import DirectoryScanner
from ..config.schema import SyncConfig
from ..utils.logging import get_logger, log_execution_time


@dataclass
class DetectionResult:
    """Pending actions of one scan, after ignore filtering."""

    actions: List[PendingAction] = field(default_factory=list)
    detected_count: int = 0

    @property
    def ignored_count(self) -> int:
        return self.detected_count - len(self.actions)


class SyncEngine:
    """Runs the scan, diff and filter steps for one source/target pair."""

    def __init__(
        self,
        config: SyncConfig,
        ignore_store: Optional[IgnoreStore] = None,
        scanner: Optional[DirectoryScanner] = None,
        detector: Optional[DifferenceDetector] = None,
        ignore_filter: Optional[IgnoreFilter] = None,
        executor: Optional[SyncExecutor] = None
    ):
        """Initialize sync engine.

        Args:
            config: Configuration snapshot used for the engine's lifetime
            ignore_store: Store read at the start of every scan; None disables ignoring
        """
        self.config = config
        self.ignore_store = ignore_store
        self.scanner = scanner or DirectoryScanner()
        self.detector = detector or DifferenceDetector()
        self.ignore_filter = ignore_filter or IgnoreFilter()
        self.executor = executor or SyncExecutor()
        self.logger = get_logger(self.__class__.__name__)

    @property
    def source_root(self) -> Path:
        return Path(self.config.source_root)

    @property
    def target_root(self) -> Path:
        return Path(self.config.target_root)

    @log_execution_time
    def find_pending_actions(self) -> DetectionResult:
        """Scan both roots and return the actions not covered by an ignore entry.

        Raises:
            DirectoryUnavailable: If the source root is missing or the target
                root cannot be created
        """
        if not self.source_root.is_dir():
            self.logger.error("Source directory does not exist", source=str(self.source_root))
            raise DirectoryUnavailable(self.source_root, "Source directory does not exist")

        self.ensure_target_root()

        source_files = self.scanner.scan(self.source_root)
        target_files = self.scanner.scan(self.target_root)

        detected = self.detector.detect(
            source_files, target_files, self.source_root, self.target_root
        )
        actions = self.ignore_filter.apply(detected, self.load_ignore_entries())

        result = DetectionResult(actions=actions, detected_count=len(detected))
        self.logger.info(
            "Scan completed",
            source_files=len(source_files),
            target_files=len(target_files),
            pending=len(result.actions),
            ignored=result.ignored_count
        )
        return result

    def ensure_target_root(self):
        """Create the target root if it does not exist yet."""
        if self.target_root.is_dir():
            return

        try:
            self.target_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(
                "Error creating target directory",
                target=str(self.target_root),
                error=str(e)
            )
            raise DirectoryUnavailable(self.target_root, f"Cannot create target directory: {e}") from e

        self.logger.info("Target directory created", target=str(self.target_root))

    def load_ignore_entries(self) -> List[IgnoreEntry]:
        """Read the ignore list; a broken list counts as empty for this cycle."""
        if self.ignore_store is None:
            return []

        try:
            return self.ignore_store.load()
        except PersistenceFailure as e:
            self.logger.error(
                "Error loading ignored files, continuing without ignores",
                path=str(self.ignore_store.path),
                error=str(e)
            )
            return []

    def execute(self, actions: List[PendingAction]) -> ExecutionResult:
        """Copy the approved actions."""
        if not actions:
            self.logger.info("No actions approved")
            return ExecutionResult()

        result = self.executor.execute(actions)
        log = self.logger.info if result.success else self.logger.warning
        log(
            "Synchronization finished",
            copied=result.copied_count,
            failed=result.failed_count
        )
        return result
