"""
Catalog Backup - scheduled backups of catalog directories.

This package copies catalogs flagged by marker files to timestamped backup
generations, validates each copy, prunes old generations and notifies
operators by email.
"""

__version__ = "1.0.0"

from .core.orchestrator import BackupOrchestrator
from .core.replicator import DirectoryReplicator
from .reporters.notifier import SendEmailNotifier

__all__ = ["BackupOrchestrator", "DirectoryReplicator", "SendEmailNotifier"]
