"""Copies approved actions, isolating per-item failures."""

import shutil
from dataclasses import dataclass, field
from typing import Iterable, List

from .exceptions import IOFailure
from .models import PendingAction
from ..utils.logging import get_logger


@dataclass
class FailedAction:
    """An approved action whose copy failed."""

    action: PendingAction
    error: str


@dataclass
class ExecutionResult:
    """Outcome of executing a batch of approved actions."""

    succeeded: List[PendingAction] = field(default_factory=list)
    failed: List[FailedAction] = field(default_factory=list)

    @property
    def copied_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed


class SyncExecutor:
    """Executes approved actions one by one.

    Every item is independent: a failure is logged and recorded, and the next
    item is attempted. Copies that succeeded are never rolled back.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def execute(self, actions: Iterable[PendingAction]) -> ExecutionResult:
        result = ExecutionResult()

        for action in actions:
            try:
                self.copy(action)
            except IOFailure as e:
                self.logger.error(
                    "Error processing item",
                    source=str(action.source_file),
                    target=str(action.target_file),
                    action=action.label,
                    error=str(e.cause)
                )
                result.failed.append(FailedAction(action=action, error=str(e.cause)))
            else:
                result.succeeded.append(action)

        return result

    def copy(self, action: PendingAction):
        """Create the destination directory if needed and copy the file over it.

        Content and modification time are copied so source and destination
        compare as synchronized afterwards.

        Raises:
            IOFailure: If the directory cannot be created or the copy fails
        """
        try:
            if action.target_file.is_dir():
                # copy2 would silently copy into the directory
                raise IsADirectoryError(21, "Destination is a directory", str(action.target_file))
            action.target_file.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(action.source_file, action.target_file)
        except OSError as e:
            raise IOFailure(action.source_file, action.target_file, e) from e

        self.logger.info(
            "File synchronized",
            source=str(action.source_file),
            target=str(action.target_file),
            action=action.label
        )
