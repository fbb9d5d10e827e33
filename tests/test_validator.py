"""Tests for BackupValidator."""
import os
import shutil

import pytest

from catalog_backup.core.exceptions import ValidationError
from catalog_backup.core.validator import BackupValidator

from .conftest import make_tree


@pytest.fixture
def ten_file_source(tmp_path):
    files = {f"file{i}.dat": "x" * (i + 1) for i in range(6)}
    files.update({f"sub/file{i}.dat": "y" * (i + 1) for i in range(4)})
    return make_tree(str(tmp_path / "src"), files)


@pytest.fixture
def exact_copy(ten_file_source, tmp_path):
    dest = str(tmp_path / "dst")
    shutil.copytree(ten_file_source, dest)
    return dest


class TestBackupValidator:

    def test_identical_trees_validate(self, ten_file_source, exact_copy):
        stats = BackupValidator().validate(ten_file_source, exact_copy)
        assert stats.file_count == 10
        assert stats.subdirectory_count == 1

    def test_missing_destination(self, ten_file_source, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            BackupValidator().validate(ten_file_source, str(tmp_path / "nothing"))

    def test_one_missing_file_fails(self, ten_file_source, exact_copy):
        os.remove(os.path.join(exact_copy, "sub", "file2.dat"))

        with pytest.raises(ValidationError, match="number of files"):
            BackupValidator().validate(ten_file_source, exact_copy)

    def test_missing_subdirectory_fails(self, ten_file_source, exact_copy):
        os.makedirs(os.path.join(ten_file_source, "extra"))

        with pytest.raises(ValidationError, match="sub-directories"):
            BackupValidator().validate(ten_file_source, exact_copy)

    def test_truncated_file_fails_on_size(self, ten_file_source, exact_copy):
        with open(os.path.join(exact_copy, "file5.dat"), "w") as f:
            f.write("x")

        with pytest.raises(ValidationError, match="sizes are different"):
            BackupValidator().validate(ten_file_source, exact_copy)

    def test_same_size_content_change_is_not_detected(self, ten_file_source, exact_copy):
        with open(os.path.join(exact_copy, "file0.dat"), "w") as f:
            f.write("z")

        BackupValidator().validate(ten_file_source, exact_copy)
