"""Tests for AdmissionController and DiskSpaceProbe."""
import os
from collections import namedtuple

import pytest

from catalog_backup.core.admission import LOW_DISK_SPACE_SUBJECT, AdmissionController
from catalog_backup.core.disk_space import DiskSpaceProbe
from catalog_backup.core.exceptions import LowDiskSpaceError, VolumeNotFoundError

from .conftest import FakeProbe


class TestAdmissionController:

    def test_low_space_is_fatal(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=150), notifier,
                                         alert_threshold_percent=10)

        with pytest.raises(LowDiskSpaceError) as exc_info:
            controller.check_admission("/data", 100, "sales")

        assert exc_info.value.remaining_percent == 5.0
        assert exc_info.value.catalog == "sales"
        assert notifier.subjects == [LOW_DISK_SPACE_SUBJECT]
        assert "sales" in notifier.sent[0]["body"]

    def test_enough_space_proceeds(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=400), notifier,
                                         alert_threshold_percent=10)

        decision = controller.check_admission("/data", 100, "sales")

        assert decision.admitted
        assert decision.remaining_percent == 30.0
        assert decision.available_after_bytes == 300
        assert notifier.sent == []

    def test_exactly_at_threshold_proceeds(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=200), notifier,
                                         alert_threshold_percent=10)

        decision = controller.check_admission("/data", 100, "sales")

        assert decision.remaining_percent == 10.0
        assert decision.admitted

    def test_fractional_percent_just_below_threshold_is_fatal(self, notifier):
        controller = AdmissionController(FakeProbe(total=10000, available=1099), notifier,
                                         alert_threshold_percent=10)

        with pytest.raises(LowDiskSpaceError) as exc_info:
            controller.check_admission("/data", 100, "sales")

        assert exc_info.value.remaining_percent == pytest.approx(9.99)

    def test_backup_larger_than_free_space(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=50), notifier,
                                         alert_threshold_percent=0)

        with pytest.raises(LowDiskSpaceError):
            controller.check_admission("/data", 100, "sales")

    def test_probes_given_path(self, notifier):
        probe = FakeProbe()
        AdmissionController(probe, notifier).check_admission("/volume/path", 1, "sales")
        assert probe.calls == ["/volume/path"]

    def test_warning_below_threshold(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=150), notifier,
                                         alert_threshold_percent=10, warning_threshold_percent=20)

        warning = controller.check_warning("/data")

        assert warning is not None
        assert warning.remaining_percent == 15.0
        assert warning.threshold_percent == 20
        assert notifier.sent == []

    def test_no_warning_above_threshold(self, notifier):
        controller = AdmissionController(FakeProbe(total=1000, available=500), notifier,
                                         warning_threshold_percent=20)

        assert controller.check_warning("/data") is None


DiskUsage = namedtuple("DiskUsage", "total used free")


class TestDiskSpaceProbe:

    def test_probes_real_volume(self, tmp_path):
        snapshot = DiskSpaceProbe().probe(str(tmp_path))

        assert snapshot.total_bytes > 0
        assert 0 <= snapshot.available_bytes <= snapshot.total_bytes
        assert os.path.ismount(snapshot.path)

    def test_missing_path_uses_nearest_existing_ancestor(self, tmp_path):
        probe = DiskSpaceProbe()
        assert probe.find_mount_point(str(tmp_path / "not" / "yet")) == probe.find_mount_point(str(tmp_path))

    def test_reports_disk_usage(self, tmp_path, monkeypatch):
        monkeypatch.setattr("catalog_backup.core.disk_space.shutil.disk_usage",
                            lambda path: DiskUsage(total=1000, used=600, free=400))

        snapshot = DiskSpaceProbe().probe(str(tmp_path))

        assert (snapshot.total_bytes, snapshot.available_bytes) == (1000, 400)
        assert snapshot.available_percent == 40.0

    def test_unreadable_volume_raises(self, tmp_path, monkeypatch):
        def not_ready(path):
            raise OSError("device not ready")

        monkeypatch.setattr("catalog_backup.core.disk_space.shutil.disk_usage", not_ready)

        with pytest.raises(VolumeNotFoundError, match="not ready"):
            DiskSpaceProbe().probe(str(tmp_path))

    def test_empty_path_raises(self):
        with pytest.raises(VolumeNotFoundError):
            DiskSpaceProbe().probe("")
