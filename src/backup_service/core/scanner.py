"""Recursive directory listing."""

import os
from pathlib import Path
from typing import List, Union

from .exceptions import DirectoryUnavailable
from ..utils.logging import get_logger


class DirectoryScanner:
    """Lists every regular file below a root directory.

    Directories and files are visited in sorted order so two scans of an
    unchanged tree return the same list. Symlinked directories are not
    followed; unreadable sub-directories are logged and skipped.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def scan(self, root: Union[str, Path]) -> List[Path]:
        """Return absolute paths of all regular files under ``root``.

        Raises:
            DirectoryUnavailable: If ``root`` does not exist or is not a directory
        """
        root = Path(root).absolute()
        if not root.is_dir():
            raise DirectoryUnavailable(root)

        files: List[Path] = []

        def on_error(error: OSError):
            self.logger.warning(
                "Skipping unreadable directory",
                path=error.filename,
                error=str(error)
            )

        for dir_path, dir_names, file_names in os.walk(root, onerror=on_error):
            dir_names.sort()
            current = Path(dir_path)
            for name in sorted(file_names):
                path = current / name
                if path.is_file():
                    files.append(path)

        self.logger.debug("Directory scanned", root=str(root), files=len(files))
        return files
