"""Persisted ignore decisions and the filter applying them."""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .exceptions import PersistenceFailure
from .models import IgnoreEntry, PendingAction, file_timestamp
from ..utils.logging import get_logger


_ENTRY_LIST = TypeAdapter(List[IgnoreEntry])


class IgnoreStore:
    """JSON file holding the ignore entries, keyed by bare file name."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger(self.__class__.__name__)
        self._lock = threading.Lock()

    def load(self) -> List[IgnoreEntry]:
        """Read all entries, creating an empty list file if none exists.

        Raises:
            PersistenceFailure: If the file cannot be read or parsed
        """
        with self._lock:
            return self._load()

    def save(self, entries: Iterable[IgnoreEntry]):
        """Replace the stored entries.

        Raises:
            PersistenceFailure: If the file cannot be written
        """
        with self._lock:
            self._save(list(entries))

    def upsert(self, file_name: str, last_modified: datetime, permanent: bool = False) -> IgnoreEntry:
        """Record (or replace) the decision for ``file_name``."""
        entry = IgnoreEntry(
            file_name=file_name,
            last_modified=last_modified,
            permanently_ignored=permanent
        )
        with self._lock:
            entries = [e for e in self._load() if e.file_name != file_name]
            entries.append(entry)
            self._save(entries)

        self.logger.info(
            "Ignore entry recorded",
            file_name=file_name,
            permanently_ignored=permanent
        )
        return entry

    def remove(self, file_name: str) -> bool:
        """Drop the entry for ``file_name``; returns False if there was none."""
        with self._lock:
            entries = self._load()
            kept = [e for e in entries if e.file_name != file_name]
            if len(kept) == len(entries):
                return False
            self._save(kept)

        self.logger.info("Ignore entry removed", file_name=file_name)
        return True

    def _load(self) -> List[IgnoreEntry]:
        if not self.path.exists():
            self._save([])
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
            return _ENTRY_LIST.validate_json(raw) if raw.strip() else []
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            raise PersistenceFailure(f"Failed to read ignore list {self.path}: {e}") from e

    def _save(self, entries: List[IgnoreEntry]):
        data = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise PersistenceFailure(f"Failed to write ignore list {self.path}: {e}") from e


class IgnoreFilter:
    """Drops pending actions covered by an ignore entry.

    An entry covers an action when its file name equals the base name of the
    file being copied and it is either permanent or its recorded timestamp
    equals the file's current modification time. Files sharing a name in
    different directories share the same entry.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def apply(
        self,
        actions: Iterable[PendingAction],
        entries: Iterable[IgnoreEntry]
    ) -> List[PendingAction]:
        by_name = {}
        for entry in entries:
            by_name.setdefault(entry.file_name, entry)

        kept = []
        for action in actions:
            entry = by_name.get(action.file_name)
            if entry is not None and self._is_covered(action, entry):
                self.logger.debug(
                    "Action suppressed by ignore entry",
                    file=str(action.source_file),
                    permanently_ignored=entry.permanently_ignored
                )
                continue
            kept.append(action)
        return kept

    def _is_covered(self, action: PendingAction, entry: IgnoreEntry) -> bool:
        if entry.permanently_ignored:
            return True

        modified = self._current_timestamp(action.source_file)
        return modified is not None and entry.matches(action.file_name, modified)

    @staticmethod
    def _current_timestamp(path: Path) -> Optional[datetime]:
        try:
            return file_timestamp(path)
        except FileNotFoundError:
            return None
