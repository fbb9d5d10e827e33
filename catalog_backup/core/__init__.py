"""Core backup lifecycle functionality."""

from .admission import AdmissionController
from .disk_space import DiskSpaceProbe
from .orchestrator import BackupOrchestrator
from .pruner import RetentionPruner, collect_generations
from .replicator import DirectoryReplicator
from .scanner import TreeScanner
from .validator import BackupValidator

__all__ = [
    "AdmissionController",
    "BackupOrchestrator",
    "BackupValidator",
    "DirectoryReplicator",
    "DiskSpaceProbe",
    "RetentionPruner",
    "TreeScanner",
    "collect_generations",
]
