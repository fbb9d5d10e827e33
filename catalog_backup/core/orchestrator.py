"""Catalog backup run coordination."""

import os
import logging
import shutil
from datetime import datetime
from typing import List, Optional

from .admission import AdmissionController
from .disk_space import DiskSpaceProbe
from .exceptions import (
    CatalogError,
    LowDiskSpaceError,
    MarkerDirectoryNotFoundError,
    RunAbortedError,
)
from .models import (
    CatalogResult,
    CatalogState,
    CatalogStatus,
    PendingCatalog,
    RunOutcome,
)
from .pruner import RetentionPruner, collect_generations
from .replicator import DirectoryReplicator, ProgressCallback
from .scanner import TreeScanner
from .validator import BackupValidator
from ..config.config_manager import BackupConfig
from ..reporters.notifier import Notifier
from ..utils.formatters import (
    bytes_to_megabytes,
    catalog_name_from_marker,
    format_file_size,
    generation_dir_name,
)


class BackupOrchestrator:
    """Runs the backup lifecycle for every pending catalog, one at a time."""

    def __init__(self, config: BackupConfig, notifier: Notifier,
                 probe: Optional[DiskSpaceProbe] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 log_file: Optional[str] = None):
        """Initialize backup orchestrator.

        Args:
            config: Run configuration.
            notifier: Where run notifications are sent.
            probe: Disk space probe, replaceable for tests.
            progress_callback: Receives per-file copy progress.
            log_file: Run log file attached to end of run notifications.
        """
        self.config = config
        self.notifier = notifier
        self.log_file = log_file
        self.logger = logging.getLogger(__name__)

        self.scanner = TreeScanner()
        self.replicator = DirectoryReplicator(self.scanner, progress_callback)
        self.validator = BackupValidator(self.scanner)
        self.pruner = RetentionPruner(
            keep=config.keep_last_x_copy_of_backup,
            delete_enabled=config.delete_old_catalogs
        )
        self.admission = AdmissionController(
            probe or DiskSpaceProbe(),
            notifier,
            alert_threshold_percent=config.low_disk_space_alert_percent,
            warning_threshold_percent=config.low_disk_space_warning_percent
        )

    @property
    def client_label(self) -> str:
        return self.config.client_name or "Catalog"

    def discover_catalogs(self) -> List[PendingCatalog]:
        """Collect the catalogs named by files in the marker directory.

        Returns:
            Pending catalogs in marker file name order, one per catalog name.

        Raises:
            MarkerDirectoryNotFoundError: If the marker directory does not exist
                or cannot be read.
        """
        marker_dir = self.config.backup_file_parent_dir
        if not os.path.isdir(marker_dir):
            raise MarkerDirectoryNotFoundError(f"Backup file directory {marker_dir} does not exist.")

        pending = {}
        try:
            with os.scandir(marker_dir) as entries:
                markers = sorted((e for e in entries if e.is_file()), key=lambda e: e.name)
        except OSError as e:
            raise MarkerDirectoryNotFoundError(f"Backup file directory {marker_dir} could not be read: {e}") from e

        for marker in markers:
            name = catalog_name_from_marker(marker.name)
            if not name:
                self.logger.debug(f"Ignoring marker file without a catalog name: {marker.name}")
                continue
            pending.setdefault(name, PendingCatalog(name=name)).marker_files.append(marker.path)

        self.logger.info(f"Catalogs needing backup - {len(pending)}")
        return list(pending.values())

    def run(self) -> RunOutcome:
        """Back up every pending catalog and send the end of run notification.

        Returns:
            Outcome of the run.

        Raises:
            RunAbortedError: For conditions that stop the whole run. An alert
                has been sent before this propagates.
        """
        outcome = RunOutcome(started=datetime.now())
        self.logger.info(f"Backup Date : {outcome.started.strftime('%Y-%m-%d')}")

        try:
            pending = self.discover_catalogs()

            if not pending:
                self.logger.info("No catalogs need a backup, job is over.")
                outcome.finished = datetime.now()
                self._notify_success(outcome)
                return outcome

            self.logger.info(f"Backup starting at {datetime.now().strftime('%H:%M:%S')}")
            for catalog in pending:
                outcome.add(self.process_catalog(catalog))

            outcome.finished = datetime.now()
            self.logger.info(f"All catalogs processed: {len(outcome.succeeded)} succeeded, "
                             f"{len(outcome.skipped)} skipped, {len(outcome.failed)} failed")
            self._finish(outcome)

        except LowDiskSpaceError:
            raise
        except RunAbortedError as e:
            self._notify_critical(e)
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error during backup run: {e}")
            self._notify_critical(e)
            raise

        return outcome

    def process_catalog(self, pending: PendingCatalog) -> CatalogResult:
        """Run one catalog through check, admission, copy, validation and pruning.

        Per-catalog failures are returned as a failed result. Run-level
        failures (low disk space, missing volume) propagate.
        """
        catalog = pending.name
        state = CatalogState.DISCOVERED
        self.logger.info(f"Catalog - {catalog} @ {datetime.now().strftime('%H:%M:%S')}")

        source = os.path.join(self.config.source_dir, catalog)
        if not os.path.isdir(source):
            self.logger.info(f"Catalog {catalog} source directory {source} doesn't exist, backup not created.")
            self.remove_markers(pending)
            return CatalogResult(
                catalog=catalog,
                status=CatalogStatus.SKIPPED,
                state=CatalogState.CLEANED,
                reason=f"source directory {source} does not exist"
            )

        destination = None
        try:
            bytes_needed = self.scanner.directory_size(source)
            state = CatalogState.SOURCE_CHECKED
            self.logger.info(f"Catalog {catalog} needs {format_file_size(bytes_needed)} disk space.")

            self.admission.check_admission(self.config.volume_check_dir, bytes_needed, catalog)
            state = CatalogState.ADMITTED

            destination = os.path.join(self.config.destination_dir, generation_dir_name(catalog))
            self.replicator.copy(source, destination, recursive=True)
            state = CatalogState.COPIED

            self.validator.validate(source, destination)
            state = CatalogState.VALIDATED
            self.logger.info(f"Catalog {catalog} successfully backed up @ '{datetime.now().strftime('%H:%M:%S')}'")

            generations = collect_generations(self.config.destination_dir).get(catalog, [])
            prune_report = self.pruner.prune(catalog, generations)
            state = CatalogState.PRUNED

        except (CatalogError, OSError) as e:
            self.logger.error(f"Catalog backup failed for {catalog}\nFailure Reason : {e}", exc_info=True)
            if destination and os.path.isdir(destination):
                # An unvalidated copy must not count as a generation
                shutil.rmtree(destination, ignore_errors=True)
                self.logger.info(f"Removed incomplete backup copy {destination}")
            return CatalogResult(
                catalog=catalog,
                status=CatalogStatus.FAILED,
                state=CatalogState.FAILED,
                failed_at=state,
                reason=str(e),
                destination=destination
            )

        self.remove_markers(pending)
        return CatalogResult(
            catalog=catalog,
            status=CatalogStatus.SUCCEEDED,
            state=CatalogState.CLEANED,
            destination=destination,
            bytes_copied=bytes_needed,
            prune_report=prune_report
        )

    def remove_markers(self, pending: PendingCatalog) -> None:
        """Delete the marker files of a handled catalog."""
        for marker in pending.marker_files:
            try:
                os.remove(marker)
                self.logger.debug(f"Removed marker file {marker}")
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.error(f"Could not remove marker file {marker}, catalog will be retried next run: {e}")

    def _finish(self, outcome: RunOutcome) -> None:
        self.logger.info(f"Run summary:\n{outcome.summary()}")

        if outcome.any_failed:
            subject = f"CRITICAL ALERT!!! Daily {self.client_label} Catalog Backup completed with failures."
            self.logger.error(subject)
            self.notifier.notify(subject, outcome.summary(), self._attachment())
            return

        warning = self.admission.check_warning(self.config.volume_check_dir)
        if warning:
            subject = f"WARNING! Daily {self.client_label} Catalog Backup - Nearing Low Disk Space"
            body = (
                f"Available disk space {warning.remaining_percent:.2f}% is less than the warning "
                f"threshold {warning.threshold_percent}%\n"
                f"Total disk space : {bytes_to_megabytes(warning.snapshot.total_bytes):.2f} MB\n"
                f"Available disk space : {bytes_to_megabytes(warning.snapshot.available_bytes):.2f} MB\n\n"
                + outcome.summary()
            )
            self.notifier.notify(subject, body)
            return

        self._notify_success(outcome)

    def _notify_success(self, outcome: RunOutcome) -> None:
        subject = f"Daily {self.client_label} backup was Successful"
        self.notifier.notify(subject, outcome.summary(), self._attachment())

    def _notify_critical(self, error: Exception) -> None:
        subject = f"CRITICAL ALERT!!! Daily {self.client_label} Catalog Backup Failed."
        body = f"Backup on {self.client_label} failed.\n\nException : {error}"
        self.logger.error(f"{subject}\n{body}")
        self.notifier.notify(subject, body)

    def _attachment(self) -> Optional[str]:
        if self.log_file and os.path.isfile(self.log_file):
            return self.log_file
        return None
