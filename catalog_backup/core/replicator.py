"""Directory tree replication for catalog backups."""

import os
import shutil
import logging
from typing import Callable, Optional

from .exceptions import CopyError, SourceNotFoundError
from .scanner import TreeScanner


ProgressCallback = Callable[[int, int, int], None]


class DirectoryReplicator:
    """Copies a directory tree to a fresh destination, reporting progress.

    The destination is never merged into: if it already exists it is removed
    before copying starts, so re-running a failed copy produces the same
    result as a clean one.
    """

    def __init__(self, scanner: Optional[TreeScanner] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize replicator.

        Args:
            scanner: Scanner used to count source files up front.
            progress_callback: Called after every file with
                (processed_files, total_files, percent_complete).
        """
        self.scanner = scanner or TreeScanner()
        self.progress_callback = progress_callback
        self.total_files = 0
        self.processed_files = 0
        self.logger = logging.getLogger(__name__)

    def copy(self, source: str, destination: str, recursive: bool = True) -> int:
        """Copy source tree to destination.

        Args:
            source: Directory to copy.
            destination: Directory to create. Removed first if it exists.
            recursive: Whether subdirectories are copied as well.

        Returns:
            Number of files copied.

        Raises:
            SourceNotFoundError: If source does not exist.
            CopyError: If any file or directory cannot be copied.
        """
        if not os.path.isdir(source):
            raise SourceNotFoundError(f"Source directory does not exist or could not be found: {source}")

        self.total_files = self.scanner.count_files(source) if recursive else self._count_top_level(source)
        self.processed_files = 0
        self.logger.info(f"Copying {self.total_files} files from {source} to {destination}")

        if self.total_files == 0:
            self._report_progress()

        try:
            self._copy_tree(source, destination, recursive)
        except OSError as e:
            raise CopyError(f"Failed to copy {source} to {destination}: {e}") from e

        return self.processed_files

    @property
    def percent_complete(self) -> int:
        if self.total_files == 0:
            return 100
        return (100 * self.processed_files) // self.total_files

    def _copy_tree(self, source: str, destination: str, recursive: bool) -> None:
        if os.path.exists(destination):
            self.logger.debug(f"Removing existing destination {destination}")
            shutil.rmtree(destination)

        os.makedirs(destination)

        with os.scandir(source) as entries:
            children = sorted(entries, key=lambda e: e.name)

        subdirectories = []
        for entry in children:
            if entry.is_dir(follow_symlinks=False):
                subdirectories.append(entry)
                continue

            shutil.copy2(entry.path, os.path.join(destination, entry.name), follow_symlinks=False)
            self.processed_files += 1
            self._report_progress()

        if recursive:
            for subdir in subdirectories:
                self._copy_tree(subdir.path, os.path.join(destination, subdir.name), recursive)

    def _count_top_level(self, source: str) -> int:
        with os.scandir(source) as entries:
            return sum(1 for entry in entries if not entry.is_dir(follow_symlinks=False))

    def _report_progress(self) -> None:
        if self.progress_callback:
            self.progress_callback(self.processed_files, self.total_files, self.percent_complete)
