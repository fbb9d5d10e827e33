"""Exceptions raised by the catalog backup engine."""


class CatalogBackupError(Exception):
    """Base class for all catalog backup failures."""


class ConfigError(CatalogBackupError, ValueError):
    """Raised when startup parameters are missing or invalid."""


class CatalogError(CatalogBackupError):
    """Raised when a single catalog cannot be backed up.

    The orchestrator records these against the catalog and moves on to the
    next one.
    """


class SourceNotFoundError(CatalogError):
    """Raised when a catalog source directory does not exist."""


class CopyError(CatalogError):
    """Raised when replicating a directory tree fails part way."""


class ValidationError(CatalogError):
    """Raised when a backup copy does not match its source tree."""


class DeleteError(CatalogBackupError):
    """Raised when an old backup generation cannot be removed."""


class RunAbortedError(CatalogBackupError):
    """Raised for conditions that stop the whole run."""


class MarkerDirectoryNotFoundError(RunAbortedError):
    """Raised when the marker directory is missing."""


class VolumeNotFoundError(RunAbortedError):
    """Raised when no mounted volume can be found for a path."""


class LowDiskSpaceError(RunAbortedError):
    """Raised when a backup would leave less free space than the alert threshold."""

    def __init__(self, catalog: str, remaining_percent: float, threshold_percent: float):
        self.catalog = catalog
        self.remaining_percent = remaining_percent
        self.threshold_percent = threshold_percent
        super().__init__(
            f"Backup of catalog {catalog} would leave {remaining_percent:.2f}% disk space, "
            f"below the {threshold_percent}% threshold"
        )
