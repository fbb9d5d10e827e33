"""Tests for the command-line interface."""
from collections import namedtuple

import pytest
import yaml
from click.testing import CliRunner

from catalog_backup.cli import cli
from catalog_backup.core.pruner import collect_generations

from .conftest import make_tree


DiskUsage = namedtuple("DiskUsage", "total used free")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(backup_dirs, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "backupFileParentDir": str(backup_dirs["markers"]),
        "sourceDir": str(backup_dirs["source"]),
        "destinationDir": str(backup_dirs["destination"]),
        "backupLogFile": str(backup_dirs["logs"]) + "/",
        "clientName": "ACME",
        "lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage": 0,
        "lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage": 0,
    }))
    return str(path)


class TestRunCommand:

    def test_backs_up_pending_catalogs(self, runner, config_path, backup_dirs):
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a", "b/c.txt": "c"})
        (backup_dirs["markers"] / "sales.txt").write_text("")

        result = runner.invoke(cli, ["-c", config_path, "run"])

        assert result.exit_code == 0, result.output
        assert "Succeeded: 1" in result.output
        assert not (backup_dirs["markers"] / "sales.txt").exists()
        assert len(collect_generations(str(backup_dirs["destination"]))["sales"]) == 1
        log_files = list(backup_dirs["logs"].glob("BackupLog_*.txt"))
        assert len(log_files) == 1
        assert "Catalogs needing backup - 1" in log_files[0].read_text()

    def test_flags_override_config(self, runner, config_path, backup_dirs, tmp_path):
        other_dest = tmp_path / "elsewhere"
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a"})
        (backup_dirs["markers"] / "sales.txt").write_text("")

        result = runner.invoke(cli, ["-c", config_path, "run", "--destination-dir", str(other_dest)])

        assert result.exit_code == 0, result.output
        assert "sales" in collect_generations(str(other_dest))
        assert collect_generations(str(backup_dirs["destination"])) == {}

    def test_nothing_to_back_up(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "run"])

        assert result.exit_code == 0, result.output
        assert "Catalogs processed: 0" in result.output

    def test_failed_catalog_still_exits_zero(self, runner, config_path, backup_dirs, monkeypatch):
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a"})
        (backup_dirs["markers"] / "sales.txt").write_text("")

        def broken_copy(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr("catalog_backup.core.replicator.shutil.copy2", broken_copy)

        result = runner.invoke(cli, ["-c", config_path, "run"])

        assert result.exit_code == 0, result.output
        assert "Failed: 1" in result.output
        assert (backup_dirs["markers"] / "sales.txt").exists()

    def test_low_disk_space_exits_one(self, runner, config_path, backup_dirs, monkeypatch):
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a"})
        (backup_dirs["markers"] / "sales.txt").write_text("")
        monkeypatch.setattr("catalog_backup.core.disk_space.shutil.disk_usage",
                            lambda path: DiskUsage(total=1000, used=960, free=40))

        result = runner.invoke(cli, ["-c", config_path, "run", "--low-disk-space-alert-percent", "10"])

        assert result.exit_code == 1
        assert "Backup aborted" in result.output
        assert (backup_dirs["markers"] / "sales.txt").exists()

    def test_missing_marker_directory_exits_one(self, runner, config_path, tmp_path):
        result = runner.invoke(cli, ["-c", config_path, "run",
                                     "--backup-file-parent-dir", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_unreadable_marker_directory_exits_one(self, runner, config_path, monkeypatch):
        def denied(path):
            raise PermissionError(f"Permission denied: {path}")

        monkeypatch.setattr("catalog_backup.core.orchestrator.os.scandir", denied)

        result = runner.invoke(cli, ["-c", config_path, "run"])

        assert result.exit_code == 1
        assert "could not be read" in result.output

    def test_unexpected_error_exits_one(self, runner, config_path, backup_dirs, monkeypatch):
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a"})
        (backup_dirs["markers"] / "sales.txt").write_text("")

        def explode(self, pending):
            raise RuntimeError("boom")

        monkeypatch.setattr("catalog_backup.cli.BackupOrchestrator.process_catalog", explode)

        result = runner.invoke(cli, ["-c", config_path, "run"])

        assert result.exit_code == 1
        assert "unexpected error: boom" in result.output

    def test_config_error_exits_one(self, runner, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"sourceDir": "/src"}))

        result = runner.invoke(cli, ["-c", str(path), "run"])

        assert result.exit_code == 1
        assert "Missing required configuration values" in result.output


class TestOtherCommands:

    def test_validate_config(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "validate-config"])

        assert result.exit_code == 0, result.output
        assert "Configuration loaded successfully" in result.output
        assert "Email: Not configured" in result.output

    def test_validate_config_failure(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "validate-config", "--keep-last-x-copy-of-backup", "0"])

        assert result.exit_code == 1
        assert "keepLastXCopyOfBackup" in result.output

    def test_status_lists_pending_and_generations(self, runner, config_path, backup_dirs):
        make_tree(str(backup_dirs["source"] / "sales"), {"a.txt": "a"})
        (backup_dirs["markers"] / "sales.txt").write_text("")
        (backup_dirs["markers"] / "ghost.txt").write_text("")
        (backup_dirs["destination"] / "sales_01-02-2026_030405.old").mkdir()

        result = runner.invoke(cli, ["-c", config_path, "status"])

        assert result.exit_code == 0, result.output
        assert "Catalogs needing backup: 2" in result.output
        assert "ghost  (source missing)" in result.output
        assert "sales_01-02-2026_030405.old" in result.output
        assert (backup_dirs["markers"] / "sales.txt").exists()

    def test_test_email_without_mail_config(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "test-email"])

        assert result.exit_code == 1
        assert "Email not configured" in result.output
