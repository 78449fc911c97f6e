"""Two-directional, timestamp-based difference detection."""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .models import ActionKind, PendingAction, SyncDirection
from ..utils.logging import get_logger


class DifferenceDetector:
    """Compares two file listings and proposes copies.

    For every file on one side the counterpart at the same relative path on
    the other side is looked up: a missing counterpart yields a ``NEW`` action,
    a strictly older counterpart an ``UPDATE`` action. Equal modification
    times count as synchronized. Source-to-target actions are returned first,
    each direction in the order of its listing.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def detect(
        self,
        source_files: Iterable[Path],
        target_files: Iterable[Path],
        source_root: Union[str, Path],
        target_root: Union[str, Path]
    ) -> List[PendingAction]:
        source_root = Path(source_root).absolute()
        target_root = Path(target_root).absolute()

        actions = self._compare(
            source_files, source_root, target_root, SyncDirection.SOURCE_TO_TARGET
        )
        actions.extend(self._compare(
            target_files, target_root, source_root, SyncDirection.TARGET_TO_SOURCE
        ))

        self.logger.debug(
            "Differences detected",
            source_to_target=sum(1 for a in actions if a.direction == SyncDirection.SOURCE_TO_TARGET),
            target_to_source=sum(1 for a in actions if a.direction == SyncDirection.TARGET_TO_SOURCE)
        )
        return actions

    def _compare(
        self,
        files: Iterable[Path],
        from_root: Path,
        to_root: Path,
        direction: SyncDirection
    ) -> List[PendingAction]:
        actions = []
        for from_file in files:
            from_file = Path(from_file)
            counterpart = to_root / from_file.relative_to(from_root)
            kind = self._classify(from_file, counterpart)
            if kind is not None:
                actions.append(PendingAction(
                    source_file=from_file,
                    target_file=counterpart,
                    kind=kind,
                    direction=direction
                ))
        return actions

    def _classify(self, from_file: Path, counterpart: Path) -> Optional[ActionKind]:
        try:
            from_mtime = os.stat(from_file).st_mtime_ns
        except FileNotFoundError:
            self.logger.debug("File vanished during comparison", path=str(from_file))
            return None

        if counterpart.exists() and not counterpart.is_file():
            self.logger.warning(
                "Counterpart is not a regular file, skipping",
                path=str(from_file),
                counterpart=str(counterpart)
            )
            return None

        if not counterpart.is_file():
            return ActionKind.NEW

        try:
            to_mtime = os.stat(counterpart).st_mtime_ns
        except FileNotFoundError:
            return ActionKind.NEW

        if from_mtime > to_mtime:
            return ActionKind.UPDATE
        return None
