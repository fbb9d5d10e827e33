"""Shared fixtures for catalog backup tests."""
import logging
import os
from typing import Dict, List, Optional

import pytest

from catalog_backup.config.config_manager import BackupConfig
from catalog_backup.core.models import DiskSpaceSnapshot
from catalog_backup.reporters.notifier import Notifier


class RecordingNotifier(Notifier):
    """Keeps every notification in memory."""

    def __init__(self):
        self.sent: List[Dict[str, Optional[str]]] = []

    def notify(self, subject, body="", attachment=None):
        self.sent.append({"subject": subject, "body": body, "attachment": attachment})
        return True

    @property
    def subjects(self):
        return [n["subject"] for n in self.sent]


class FakeProbe:
    """Disk space probe returning fixed numbers."""

    def __init__(self, total=1000, available=900):
        self.total = total
        self.available = available
        self.calls = []

    def probe(self, path):
        self.calls.append(path)
        return DiskSpaceSnapshot(path=path, total_bytes=self.total, available_bytes=self.available)


def make_tree(root, files):
    """Create files under root from a {relative path: content} mapping."""
    os.makedirs(root, exist_ok=True)
    for rel_path, content in files.items():
        path = os.path.join(root, rel_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    return root


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def backup_dirs(tmp_path):
    """Marker, source and destination directories for one run."""
    dirs = {
        "markers": tmp_path / "pending",
        "source": tmp_path / "catalogs",
        "destination": tmp_path / "backups",
        "logs": tmp_path / "logs",
    }
    for path in dirs.values():
        path.mkdir()
    return dirs


@pytest.fixture
def make_config(backup_dirs):
    def _make(**kwargs):
        values = dict(
            backup_file_parent_dir=str(backup_dirs["markers"]),
            source_dir=str(backup_dirs["source"]),
            destination_dir=str(backup_dirs["destination"]),
            backup_log_file=str(backup_dirs["logs"]) + os.sep,
            client_name="ACME",
        )
        values.update(kwargs)
        return BackupConfig(**values)
    return _make
