"""Data models for catalog backups."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


@dataclass
class TreeStats:
    """Recursive statistics about a directory tree."""
    path: str
    file_count: int
    subdirectory_count: int
    total_size: int


@dataclass
class PendingCatalog:
    """A catalog waiting to be backed up and the marker files that requested it."""
    name: str
    marker_files: List[str] = field(default_factory=list)


@dataclass
class BackupGeneration:
    """One completed backup copy of a catalog."""
    catalog: str
    path: str
    name: str
    created: datetime


@dataclass
class DiskSpaceSnapshot:
    """Disk usage of the volume hosting a path, sampled at one point in time."""
    path: str
    total_bytes: int
    available_bytes: int

    @property
    def available_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.available_bytes * 100 / self.total_bytes


@dataclass
class AdmissionDecision:
    """Outcome of a disk space check for a prospective backup."""
    catalog: str
    snapshot: DiskSpaceSnapshot
    bytes_needed: int
    available_after_bytes: int
    remaining_percent: float
    threshold_percent: float

    @property
    def admitted(self) -> bool:
        return self.remaining_percent >= self.threshold_percent


@dataclass
class PruneReport:
    """Result of pruning the generations of one catalog."""
    catalog: str
    total: int
    keep: int
    dry_run: bool
    retained: List[BackupGeneration] = field(default_factory=list)
    deleted: List[BackupGeneration] = field(default_factory=list)
    pending_deletion: List[BackupGeneration] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def latest(self) -> Optional[BackupGeneration]:
        return self.retained[-1] if self.retained else None

    def summary(self) -> str:
        """Human readable description of what was kept and removed."""
        lines = []
        latest = self.latest
        latest_date = latest.created.strftime('%Y-%m-%d') if latest else 'n/a'
        lines.append(f"Total backup copies '{self.total}', latest copy date '{latest_date}'.")

        if self.deleted:
            lines.append(f"Deleted {len(self.deleted)} old copies: "
                         + ", ".join(g.name for g in self.deleted))
        if self.pending_deletion:
            lines.append(f"Dry run, {len(self.pending_deletion)} copies would be deleted: "
                         + ", ".join(g.name for g in self.pending_deletion))
        if self.errors:
            lines.append(f"{len(self.errors)} copies could not be deleted")

        if self.total > self.keep:
            dates = ", ".join(f'"{g.created.strftime("%Y-%m-%d %H:%M:%S")}"' for g in self.retained)
            lines.append(f"Current copies have the dates {dates}.")

        return "\n".join(lines)


class CatalogState(Enum):
    """Lifecycle stages of a catalog within one run."""
    DISCOVERED = "discovered"
    SOURCE_CHECKED = "source_checked"
    ADMITTED = "admitted"
    COPIED = "copied"
    VALIDATED = "validated"
    PRUNED = "pruned"
    CLEANED = "cleaned"
    FAILED = "failed"


class CatalogStatus(Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CatalogResult:
    """What happened to one catalog during a run."""
    catalog: str
    status: CatalogStatus
    state: CatalogState
    reason: Optional[str] = None
    failed_at: Optional[CatalogState] = None
    destination: Optional[str] = None
    bytes_copied: int = 0
    prune_report: Optional[PruneReport] = None

    @property
    def failed(self) -> bool:
        return self.status is CatalogStatus.FAILED


@dataclass
class RunOutcome:
    """Aggregated results of a backup run."""
    started: datetime
    results: List[CatalogResult] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    finished: Optional[datetime] = None

    @property
    def any_failed(self) -> bool:
        return any(r.failed for r in self.results)

    @property
    def failed(self) -> List[CatalogResult]:
        return [r for r in self.results if r.status is CatalogStatus.FAILED]

    @property
    def succeeded(self) -> List[CatalogResult]:
        return [r for r in self.results if r.status is CatalogStatus.SUCCEEDED]

    @property
    def skipped(self) -> List[CatalogResult]:
        return [r for r in self.results if r.status is CatalogStatus.SKIPPED]

    def add(self, result: CatalogResult) -> None:
        self.results.append(result)
        if result.status is CatalogStatus.FAILED:
            self.messages.append(
                f"Catalog backup failed for {result.catalog} "
                f"(at {result.failed_at.value if result.failed_at else 'unknown'}): {result.reason}"
            )
        elif result.status is CatalogStatus.SKIPPED:
            self.messages.append(f"Catalog {result.catalog} skipped: {result.reason}")
        else:
            self.messages.append(f"Catalog {result.catalog} backed up to {result.destination}")

    def summary(self) -> str:
        """Text used as the body of the end of run notification."""
        lines = [
            f"Backup run started {self.started.strftime('%Y-%m-%d %H:%M:%S')}",
            f"Catalogs processed: {len(self.results)} "
            f"({len(self.succeeded)} succeeded, {len(self.skipped)} skipped, {len(self.failed)} failed)",
            "",
        ]
        lines.extend(self.messages)
        return "\n".join(lines)
