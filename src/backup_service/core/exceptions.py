"""Exceptions raised by the synchronization engine."""

from pathlib import Path
from typing import Optional


class SyncEngineError(Exception):
    """Base exception for sync engine errors."""
    pass


class DirectoryUnavailable(SyncEngineError):
    """Raised when a source or target root is missing or not mounted."""

    def __init__(self, path: Path, message: Optional[str] = None):
        self.path = Path(path)
        super().__init__(message or f"Directory not available: {self.path}")


class IOFailure(SyncEngineError):
    """Raised when copying a single file (or creating its directory) fails."""

    def __init__(self, source: Path, target: Path, cause: OSError):
        self.source = Path(source)
        self.target = Path(target)
        self.cause = cause
        super().__init__(f"Failed to copy {self.source} -> {self.target}: {cause}")


class PersistenceFailure(SyncEngineError):
    """Raised when the ignore list cannot be read or written."""
    pass
