"""Formatting utilities for catalog backup names and reports."""

import os
from datetime import datetime
from typing import Optional


GENERATION_TIMESTAMP_FORMAT = '%m-%d-%Y_%H%M%S'
GENERATION_SUFFIX = '.old'
LOG_FILE_TIMESTAMP_FORMAT = '%m-%d-%Y-%H%M%S'


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string.
    """
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f}MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f}GB"


def bytes_to_megabytes(size_bytes: int) -> float:
    return size_bytes / 1024 / 1024


def format_date(dt: datetime, short: bool = False) -> str:
    """Format datetime for display.

    Args:
        dt: Datetime to format.
        short: If True, use short format.

    Returns:
        Formatted date string.
    """
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')


def generation_dir_name(catalog: str, when: Optional[datetime] = None) -> str:
    """Name of the backup directory for one generation of a catalog.

    Args:
        catalog: Catalog name.
        when: Backup time, defaults to now.

    Returns:
        Directory name such as ``sales_10-19-2026_143005.old``.
    """
    when = when or datetime.now()
    return f"{catalog}_{when.strftime(GENERATION_TIMESTAMP_FORMAT)}{GENERATION_SUFFIX}"


def log_file_path(prefix: str, when: Optional[datetime] = None) -> str:
    """Build the timestamped run log file path from the configured prefix.

    The prefix is used verbatim, so a directory prefix must end with a separator.
    """
    when = when or datetime.now()
    return f"{prefix}BackupLog_{when.strftime(LOG_FILE_TIMESTAMP_FORMAT)}.txt"


def catalog_name_from_marker(file_name: str) -> str:
    """Catalog name encoded by a marker file: its basename up to the first dot."""
    base = os.path.basename(file_name)
    return base.split('.', 1)[0]
