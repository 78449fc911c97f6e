"""Data types shared by the synchronization engine."""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionKind(str, Enum):
    """Why a file has to be copied."""
    NEW = "New"
    UPDATE = "Update"


class SyncDirection(str, Enum):
    """Which way a file is copied."""
    SOURCE_TO_TARGET = "Source -> Target"
    TARGET_TO_SOURCE = "Target -> Source"


@dataclass(frozen=True)
class PendingAction:
    """A detected difference requiring a one-directional copy.

    ``source_file`` is always the file copied from and ``target_file`` the
    file copied to, whatever the direction.
    """

    source_file: Path
    target_file: Path
    kind: ActionKind
    direction: SyncDirection

    @property
    def file_name(self) -> str:
        return self.source_file.name

    @property
    def label(self) -> str:
        """Human readable reason, e.g. ``New (Source -> Target)``."""
        return f"{self.kind.value} ({self.direction.value})"


class IgnoreEntry(BaseModel):
    """A persisted decision to stop proposing a file."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName")
    last_modified: datetime = Field(..., alias="lastModified")
    permanently_ignored: bool = Field(default=False, alias="permanentlyIgnored")

    @field_validator("last_modified")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        # Entries written without an offset are local wall-clock times
        if v.tzinfo is None:
            v = v.astimezone()
        return v.astimezone(timezone.utc)

    def matches(self, file_name: str, last_modified: datetime) -> bool:
        """True when this entry suppresses a file with the given name and mtime."""
        if self.file_name != file_name:
            return False
        return self.permanently_ignored or self.last_modified == last_modified


def file_timestamp(path: Path) -> datetime:
    """Last-write time of a file as an aware UTC datetime (microsecond precision)."""
    mtime_ns = os.stat(path).st_mtime_ns
    seconds, nanos = divmod(mtime_ns, 1_000_000_000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=nanos // 1000)
