"""Presenters decide which pending actions get executed."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Union

import click

from .exceptions import PersistenceFailure
from .ignore import IgnoreStore
from .models import PendingAction, SyncDirection, file_timestamp
from ..utils.logging import get_logger


def relative_location(root: Union[str, Path], path: Union[str, Path], prefix: str) -> str:
    """Directory of ``path`` relative to ``root``, prefixed: ``From/sub/dir`` or just ``From``."""
    relative = Path(path).relative_to(Path(root)).parent.as_posix()
    if relative in ("", "."):
        return prefix
    return f"{prefix}/{relative}"


class SyncPresenter(ABC):
    """Shows pending actions to someone and returns the approved ones.

    ``present`` runs off the event loop and may block while waiting for the
    user. Returning ``None`` means the presentation was closed without
    approving anything. Ignore decisions are persisted by the presenter before
    it returns.
    """

    @abstractmethod
    def present(
        self,
        actions: Sequence[PendingAction],
        source_root: Union[str, Path],
        target_root: Union[str, Path]
    ) -> Optional[List[PendingAction]]:
        raise NotImplementedError


class AutoApprovePresenter(SyncPresenter):
    """Approves every pending action, for unattended use."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def present(self, actions, source_root, target_root):
        self.logger.info("Approving all pending actions", count=len(actions))
        return list(actions)


class ConsolePresenter(SyncPresenter):
    """Asks on the terminal, action by action.

    Answers: ``y`` sync, ``n`` skip this time, ``s`` skip until the file
    changes, ``i`` ignore permanently, ``a`` sync this and all remaining,
    ``q`` stop and sync nothing.
    """

    CHOICES = ["y", "n", "s", "i", "a", "q"]

    def __init__(self, ignore_store: Optional[IgnoreStore] = None):
        self.ignore_store = ignore_store
        self.logger = get_logger(self.__class__.__name__)

    def present(self, actions, source_root, target_root):
        click.echo(f"\n{len(actions)} file(s) to synchronize:")
        for index, action in enumerate(actions, start=1):
            click.echo(f"  {index:>3}. {self.describe(action, source_root, target_root)}")

        approved: List[PendingAction] = []
        for index, action in enumerate(actions):
            self.logger.info("Asking about file", file=action.file_name, action=action.label)
            answer = click.prompt(
                f"Synchronize {action.file_name}?",
                type=click.Choice(self.CHOICES, case_sensitive=False),
                default="y",
                show_choices=True
            ).lower()

            if answer == "q":
                self.logger.info("Synchronization cancelled by user")
                return None
            if answer == "a":
                approved.extend(actions[index:])
                break
            if answer == "y":
                approved.append(action)
            elif answer == "s":
                self._remember(action, permanent=False)
            elif answer == "i":
                self._remember(action, permanent=True)

        self.logger.info("Selection completed", approved=len(approved), proposed=len(actions))
        return approved

    def describe(self, action: PendingAction, source_root, target_root) -> str:
        if action.direction == SyncDirection.SOURCE_TO_TARGET:
            origin = relative_location(source_root, action.source_file, "From")
            destination = relative_location(target_root, action.target_file, "To")
        else:
            origin = relative_location(target_root, action.source_file, "To")
            destination = relative_location(source_root, action.target_file, "From")
        return f"{action.file_name}  [{origin} -> {destination}]  {action.label}"

    def _remember(self, action: PendingAction, permanent: bool):
        if self.ignore_store is None:
            return

        try:
            self.ignore_store.upsert(
                action.file_name,
                file_timestamp(action.source_file),
                permanent=permanent
            )
        except (PersistenceFailure, FileNotFoundError) as e:
            self.logger.error(
                "Error saving ignored file",
                file=str(action.source_file),
                error=str(e)
            )
            click.echo(f"Could not save ignore decision for {action.file_name}: {e}", err=True)
