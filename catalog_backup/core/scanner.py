"""Directory tree scanning for catalog backups."""

import os
import logging
from typing import Iterator

from .exceptions import SourceNotFoundError
from .models import TreeStats


class TreeScanner:
    """Collects recursive file and directory statistics for a tree."""

    def __init__(self, follow_symlinks: bool = False):
        """Initialize tree scanner.

        Args:
            follow_symlinks: Whether symlinked directories are descended into.
        """
        self.follow_symlinks = follow_symlinks
        self.logger = logging.getLogger(__name__)

    def scan(self, base_path: str) -> TreeStats:
        """Scan a directory tree.

        Args:
            base_path: Root of the tree to scan.

        Returns:
            TreeStats for everything below base_path.

        Raises:
            SourceNotFoundError: If base_path is not an existing directory.
        """
        if not os.path.isdir(base_path):
            raise SourceNotFoundError(f"Directory does not exist or could not be found: {base_path}")

        file_count = 0
        subdirectory_count = 0
        total_size = 0

        for entry in self._walk(base_path):
            if entry.is_dir(follow_symlinks=self.follow_symlinks):
                subdirectory_count += 1
            else:
                file_count += 1
                total_size += entry.stat(follow_symlinks=self.follow_symlinks).st_size

        self.logger.debug(f"Scanned {base_path}: {file_count} files, "
                          f"{subdirectory_count} directories, {total_size} bytes")
        return TreeStats(
            path=base_path,
            file_count=file_count,
            subdirectory_count=subdirectory_count,
            total_size=total_size
        )

    def count_files(self, base_path: str) -> int:
        return self.scan(base_path).file_count

    def directory_size(self, base_path: str) -> int:
        return self.scan(base_path).total_size

    def _walk(self, directory: str) -> Iterator[os.DirEntry]:
        """Yield every entry below directory, depth first."""
        with os.scandir(directory) as entries:
            children = list(entries)

        for entry in children:
            yield entry
            if entry.is_dir(follow_symlinks=self.follow_symlinks):
                yield from self._walk(entry.path)
