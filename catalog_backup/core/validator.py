"""Post-copy validation of catalog backups."""

import os
import logging
from typing import Optional

from .exceptions import ValidationError
from .models import TreeStats
from .scanner import TreeScanner


class BackupValidator:
    """Confirms that a backup copy has the same shape and size as its source.

    Only subdirectory count, file count and aggregate byte size are compared.
    File contents are not hashed, so a copy with equal-sized corruption
    still validates.
    """

    def __init__(self, scanner: Optional[TreeScanner] = None):
        self.scanner = scanner or TreeScanner()
        self.logger = logging.getLogger(__name__)

    def validate(self, source: str, destination: str) -> TreeStats:
        """Validate destination against source.

        Args:
            source: Directory that was copied.
            destination: Backup copy of source.

        Returns:
            Statistics of the validated destination tree.

        Raises:
            ValidationError: If any of the checks fail.
        """
        if not os.path.isdir(destination):
            raise ValidationError(f"Catalog backup failed.. backup directory does not exist: {destination}")

        source_stats = self.scanner.scan(source)
        dest_stats = self.scanner.scan(destination)

        if source_stats.subdirectory_count != dest_stats.subdirectory_count:
            raise ValidationError(
                "Catalog backup failed.. Different number of sub-directories in catalog directories "
                f"(source {source_stats.subdirectory_count}, backup {dest_stats.subdirectory_count})."
            )

        if source_stats.file_count != dest_stats.file_count:
            raise ValidationError(
                "Catalog backup failed.. Different number of files in catalog directories "
                f"(source {source_stats.file_count}, backup {dest_stats.file_count})."
            )

        if source_stats.total_size != dest_stats.total_size:
            raise ValidationError(
                "Catalog backup failed.. catalog directory sizes are different "
                f"(source {source_stats.total_size} bytes, backup {dest_stats.total_size} bytes)."
            )

        self.logger.debug(f"Validated {destination}: {dest_stats.file_count} files, {dest_stats.total_size} bytes")
        return dest_stats
