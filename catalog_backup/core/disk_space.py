"""Disk space probing for backup volumes."""

import os
import shutil
import logging

from .exceptions import VolumeNotFoundError
from .models import DiskSpaceSnapshot


class DiskSpaceProbe:
    """Reports total and available bytes of the volume hosting a path."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def probe(self, path: str) -> DiskSpaceSnapshot:
        """Sample disk usage of the volume that holds path.

        Args:
            path: Any path on the volume. It does not need to exist yet,
                the nearest existing ancestor is used.

        Returns:
            DiskSpaceSnapshot for the volume.

        Raises:
            VolumeNotFoundError: If no mounted volume can be found for path.
        """
        mount_point = self.find_mount_point(path)

        try:
            usage = shutil.disk_usage(mount_point)
        except OSError as e:
            raise VolumeNotFoundError(f"Volume for {path} is not ready: {e}") from e

        if usage.total <= 0:
            raise VolumeNotFoundError(f"Volume for {path} reports no capacity")

        self.logger.debug(f"Volume {mount_point}: {usage.free} of {usage.total} bytes available")
        return DiskSpaceSnapshot(
            path=mount_point,
            total_bytes=usage.total,
            available_bytes=usage.free
        )

    def find_mount_point(self, path: str) -> str:
        """Find the mount point of the volume that holds path."""
        if not path:
            raise VolumeNotFoundError("No path given to locate a volume")

        current = os.path.abspath(path)
        while not os.path.exists(current):
            parent = os.path.dirname(current)
            if parent == current:
                raise VolumeNotFoundError(f"No mounted volume found for {path}")
            current = parent

        while not os.path.ismount(current):
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent

        return current
