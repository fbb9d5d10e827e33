"""Retention pruning of old catalog backup generations."""

import os
import re
import shutil
import logging
from datetime import datetime
from typing import Dict, List

from .exceptions import DeleteError
from .models import BackupGeneration, PruneReport
from ..utils.formatters import GENERATION_SUFFIX, GENERATION_TIMESTAMP_FORMAT


GENERATION_PATTERN = re.compile(
    r'^(?P<catalog>.+)_(?P<stamp>\d{2}-\d{2}-\d{4}_\d{6})' + re.escape(GENERATION_SUFFIX) + r'$'
)


def parse_generation_name(name: str):
    """Split a generation directory name into (catalog, timestamp).

    Returns None if name is not a generation directory.
    """
    match = GENERATION_PATTERN.match(name)
    if not match:
        return None
    try:
        stamp = datetime.strptime(match.group('stamp'), GENERATION_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return match.group('catalog'), stamp


def collect_generations(destination_root: str) -> Dict[str, List[BackupGeneration]]:
    """Group every generation directory under destination_root by catalog.

    Args:
        destination_root: Directory holding all backup generations.

    Returns:
        Mapping of catalog name to its generations, in enumeration order.
    """
    generations: Dict[str, List[BackupGeneration]] = {}

    if not os.path.isdir(destination_root):
        return generations

    with os.scandir(destination_root) as entries:
        for entry in entries:
            if not entry.is_dir(follow_symlinks=False):
                continue

            parsed = parse_generation_name(entry.name)
            if parsed is None:
                continue

            catalog, _ = parsed
            generations.setdefault(catalog, []).append(BackupGeneration(
                catalog=catalog,
                path=entry.path,
                name=entry.name,
                created=_creation_time(entry.stat(follow_symlinks=False))
            ))

    return generations


def _creation_time(entry_stat: os.stat_result) -> datetime:
    # st_birthtime is missing on most Linux filesystems, fall back to mtime
    timestamp = getattr(entry_stat, 'st_birthtime', None)
    if timestamp is None:
        timestamp = entry_stat.st_mtime
    return datetime.fromtimestamp(timestamp)


class RetentionPruner:
    """Deletes all but the newest generations of a catalog."""

    def __init__(self, keep: int = 3, delete_enabled: bool = True):
        """Initialize retention pruner.

        Args:
            keep: Number of newest generations to retain. Must be at least 1.
            delete_enabled: If False, generations that would be deleted are
                only logged (dry run).
        """
        if keep < 1:
            raise ValueError(f"Retention count must be at least 1, got {keep}")

        self.keep = keep
        self.delete_enabled = delete_enabled
        self.logger = logging.getLogger(__name__)

    def prune(self, catalog: str, generations: List[BackupGeneration]) -> PruneReport:
        """Prune the generations of one catalog.

        Args:
            catalog: Catalog the generations belong to.
            generations: All generations of the catalog, in any order.

        Returns:
            PruneReport describing what was kept and deleted.
        """
        ordered = sorted(generations, key=lambda g: g.created)
        report = PruneReport(
            catalog=catalog,
            total=len(ordered),
            keep=self.keep,
            dry_run=not self.delete_enabled
        )

        excess = len(ordered) - self.keep
        if excess <= 0:
            report.retained = ordered
            self.logger.info(f"Catalog {catalog} has {len(ordered)} backup copies, nothing to prune")
            return report

        self.logger.info(f"Catalog {catalog} has {len(ordered)} backup copies, pruning {excess}")
        report.retained = ordered[excess:]

        for generation in ordered[:excess]:
            if not self.delete_enabled:
                self.logger.info(f"Backup copy {generation.name} created @ '{generation.created}', to delete (dry run)")
                report.pending_deletion.append(generation)
                continue

            try:
                self.delete_generation(generation)
                report.deleted.append(generation)
                self.logger.info(f"Deleted backup copy {generation.name} created @ '{generation.created}'")
            except DeleteError as e:
                self.logger.error(f"Catalog {catalog}: {e}")
                report.errors.append(str(e))

        self.logger.info(report.summary())
        return report

    def delete_generation(self, generation: BackupGeneration) -> None:
        """Recursively remove one generation directory.

        Raises:
            DeleteError: If the directory cannot be removed.
        """
        try:
            shutil.rmtree(generation.path)
        except OSError as e:
            raise DeleteError(f"Could not delete backup copy {generation.path}: {e}") from e
