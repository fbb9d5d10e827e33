"""Disk space admission control for catalog backups."""

import logging
from typing import Optional

from .disk_space import DiskSpaceProbe
from .exceptions import LowDiskSpaceError
from .models import AdmissionDecision
from ..reporters.notifier import Notifier
from ..utils.formatters import bytes_to_megabytes


LOW_DISK_SPACE_SUBJECT = "CRITICAL ALERT! Daily Catalog Backup Failed! - Low Disk Space"


class AdmissionController:
    """Decides whether a backup may run given the free space it would leave.

    Percentages are computed in floating point. A result exactly equal to a
    threshold is not below it.
    """

    def __init__(self, probe: DiskSpaceProbe, notifier: Notifier,
                 alert_threshold_percent: float = 10, warning_threshold_percent: float = 20):
        """Initialize admission controller.

        Args:
            probe: Source of disk space snapshots.
            notifier: Where the low disk space alert is sent.
            alert_threshold_percent: Remaining space below which the run is aborted.
            warning_threshold_percent: Remaining space below which the end of run
                notification warns about disk space.
        """
        self.probe = probe
        self.notifier = notifier
        self.alert_threshold_percent = alert_threshold_percent
        self.warning_threshold_percent = warning_threshold_percent
        self.logger = logging.getLogger(__name__)

    def evaluate(self, path: str, bytes_needed: int, catalog: str,
                 threshold_percent: Optional[float] = None) -> AdmissionDecision:
        """Compute the free space left on path's volume after writing bytes_needed.

        Raises:
            VolumeNotFoundError: If the volume cannot be probed.
        """
        if threshold_percent is None:
            threshold_percent = self.alert_threshold_percent

        snapshot = self.probe.probe(path)
        available_after = snapshot.available_bytes - bytes_needed
        remaining_percent = available_after * 100 / snapshot.total_bytes

        return AdmissionDecision(
            catalog=catalog,
            snapshot=snapshot,
            bytes_needed=bytes_needed,
            available_after_bytes=available_after,
            remaining_percent=remaining_percent,
            threshold_percent=threshold_percent
        )

    def check_admission(self, path: str, bytes_needed: int, catalog: str) -> AdmissionDecision:
        """Gate a catalog backup on remaining disk space.

        Args:
            path: Path on the volume the backup is checked against.
            bytes_needed: Size of the catalog about to be copied.
            catalog: Catalog name, for messages.

        Returns:
            The admitted decision.

        Raises:
            LowDiskSpaceError: If the remaining space would fall below the
                alert threshold. The alert notification has been sent.
            VolumeNotFoundError: If the volume cannot be probed.
        """
        decision = self.evaluate(path, bytes_needed, catalog)
        self.logger.debug(f"After backing up {catalog} still have "
                          f"{decision.remaining_percent:.2f}% disk space available.")

        if decision.admitted:
            return decision

        self.logger.error(f"Catalog {catalog} backup failed as there is not enough space on the drive.")
        body = (
            "Catalog backup cannot be completed as available disk space on drive is less than "
            f"threshold {self.alert_threshold_percent}%\n"
            f"Total disk space : {bytes_to_megabytes(decision.snapshot.total_bytes):.2f} MB\n"
            f"Disk space required for catalog {catalog} backup : {bytes_to_megabytes(bytes_needed):.2f} MB\n"
            f"Available disk space after backup : {bytes_to_megabytes(decision.available_after_bytes):.2f} MB "
            f"({decision.remaining_percent:.2f}%)"
        )
        self.notifier.notify(LOW_DISK_SPACE_SUBJECT, body)
        raise LowDiskSpaceError(catalog, decision.remaining_percent, self.alert_threshold_percent)

    def check_warning(self, path: str) -> Optional[AdmissionDecision]:
        """Check current free space against the warning threshold.

        Returns:
            The decision if free space is below the warning threshold, else None.
        """
        decision = self.evaluate(path, 0, "", threshold_percent=self.warning_threshold_percent)
        self.logger.info(f"Disk space available after backup: {decision.remaining_percent:.2f}%")

        if decision.admitted:
            return None

        self.logger.warning(f"Disk space {decision.remaining_percent:.2f}% is below the warning "
                            f"threshold of {self.warning_threshold_percent}%")
        return decision
