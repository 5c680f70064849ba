"""
Unit tests for FileScannerImpl.
Verifies file discovery with filters, symlink/hidden policy, error handling, and edge cases.
"""
import os
from unittest import mock

import pytest

from ducky.core.errors import ErrorCollector
from ducky.core.models import Stage
from ducky.core.scanner import FileScannerImpl


def names(records):
    return sorted(os.path.basename(r.path) for r in records)


class TestFileScannerImpl:
    """Test file scanning with filters and error handling."""

    def test_scans_all_visible_files(self, test_files, temp_dir):
        """Without filters every regular non-hidden file is yielded, empty ones included."""
        records = list(FileScannerImpl([str(temp_dir)]).scan())
        assert names(records) == [
            "dup1_a.txt", "dup1_b.txt", "dup2_a.txt", "dup2_b.txt", "dup_in_subdir.txt",
            "empty.txt", "ignore.tmp", "unique1.txt", "unique2.txt"]

    def test_records_carry_metadata(self, test_files, temp_dir):
        records = {r.path: r for r in FileScannerImpl([str(temp_dir)]).scan()}
        record = records[str(test_files["dup2_a"])]
        st = os.stat(test_files["dup2_a"])
        assert (record.size, record.device, record.inode) == (2048, st.st_dev, st.st_ino)
        assert os.path.isabs(record.path)

    def test_filters_by_min_size(self, test_files, temp_dir):
        """Files smaller than min_size should be excluded; the boundary is inclusive."""
        records = list(FileScannerImpl([str(temp_dir)], min_size=1500).scan())
        assert names(records) == ["dup2_a.txt", "dup2_b.txt", "ignore.tmp", "unique1.txt", "unique2.txt"]

    def test_filters_by_extension(self, test_files, temp_dir):
        """Extensions match case-insensitively, with or without the dot."""
        (temp_dir / "PHOTO.JPG").write_bytes(b"j" * 10)
        records = list(FileScannerImpl([str(temp_dir)], extensions=["jpg", ".TMP"]).scan())
        assert names(records) == ["PHOTO.JPG", "ignore.tmp"]

    def test_hidden_entries_skipped_by_default(self, test_files, temp_dir):
        hidden_dir = temp_dir / ".cache"
        hidden_dir.mkdir()
        (hidden_dir / "inside.txt").write_bytes(b"x")

        default = names(FileScannerImpl([str(temp_dir)]).scan())
        assert ".hidden.txt" not in default and "inside.txt" not in default

        with_hidden = names(FileScannerImpl([str(temp_dir)], include_hidden=True).scan())
        assert ".hidden.txt" in with_hidden and "inside.txt" in with_hidden

    def test_excluded_dirs_pruned(self, test_files, temp_dir):
        records = list(FileScannerImpl([str(temp_dir)], excluded_dirs=[str(temp_dir / "subdir")]).scan())
        assert "dup_in_subdir.txt" not in names(records)
        assert "dup1_a.txt" in names(records)

    def test_excluded_dir_prefix_is_not_a_match(self, temp_dir):
        """Excluding /x/sub must not prune /x/sub2."""
        (temp_dir / "sub").mkdir()
        (temp_dir / "sub2").mkdir()
        (temp_dir / "sub2" / "kept.txt").write_bytes(b"k")
        records = list(FileScannerImpl([str(temp_dir)], excluded_dirs=[str(temp_dir / "sub")]).scan())
        assert names(records) == ["kept.txt"]

    def test_symlinks_not_followed_by_default(self, temp_dir):
        real_dir = temp_dir / "real"
        real_dir.mkdir()
        target = real_dir / "data.bin"
        target.write_bytes(b"z" * 10)
        (temp_dir / "link.bin").symlink_to(target)
        (temp_dir / "linkdir").symlink_to(real_dir, target_is_directory=True)

        assert names(FileScannerImpl([str(temp_dir)]).scan()) == ["data.bin"]

    def test_symlinks_followed_when_requested(self, temp_dir):
        real_dir = temp_dir / "real"
        real_dir.mkdir()
        target = real_dir / "data.bin"
        target.write_bytes(b"z" * 10)
        (temp_dir / "link.bin").symlink_to(target)

        records = list(FileScannerImpl([str(temp_dir)], follow_symlinks=True).scan())
        assert names(records) == ["data.bin", "link.bin"]
        assert records[0].inode == records[1].inode

    def test_symlink_loop_terminates(self, temp_dir):
        loop_dir = temp_dir / "a"
        loop_dir.mkdir()
        (loop_dir / "f.txt").write_bytes(b"f")
        (loop_dir / "back").symlink_to(temp_dir, target_is_directory=True)

        records = list(FileScannerImpl([str(temp_dir)], follow_symlinks=True).scan())
        assert names(records) == ["f.txt"]

    def test_overlapping_roots_yield_each_path_once(self, test_files, temp_dir):
        records = list(FileScannerImpl([str(temp_dir), str(temp_dir / "subdir")]).scan())
        paths = [r.path for r in records]
        assert len(paths) == len(set(paths))
        assert paths.count(str(test_files["sub_dup"])) == 1

    def test_deterministic_order(self, test_files, temp_dir):
        first = [r.path for r in FileScannerImpl([str(temp_dir)]).scan()]
        second = [r.path for r in FileScannerImpl([str(temp_dir)]).scan()]
        assert first == second

    def test_stopped_flag_ends_scan(self, test_files, temp_dir):
        assert list(FileScannerImpl([str(temp_dir)]).scan(stopped_flag=lambda: True)) == []

    def test_vanished_file_skipped(self, test_files, temp_dir):
        real_stat = os.stat

        def flaky_stat(path, *args, **kwargs):
            if str(path).endswith("unique1.txt"):
                raise FileNotFoundError(2, "No such file", str(path))
            return real_stat(path, *args, **kwargs)

        with mock.patch("ducky.core.scanner.os.stat", side_effect=flaky_stat):
            records = list(FileScannerImpl([str(temp_dir)]).scan())
        assert "unique1.txt" not in names(records)
        assert "unique2.txt" in names(records)

    def test_unreadable_directory_recorded(self, test_files, temp_dir):
        """os.walk errors are recorded as discovery errors and the walk continues."""
        errors = ErrorCollector()
        scanner = FileScannerImpl([str(temp_dir)], errors=errors)
        scanner._on_walk_error(PermissionError(13, "Permission denied", str(temp_dir / "locked")))
        assert scanner.walk_errors == 1
        assert errors.errors[0].stage is Stage.DISCOVER
        assert errors.errors[0].path.endswith("locked")


class TestValidateRoots:
    """Structural errors abort the run before anything is scanned."""

    def test_missing_root(self, temp_dir):
        with pytest.raises(RuntimeError, match="does not exist"):
            FileScannerImpl([str(temp_dir / "missing")]).validate_roots()

    def test_root_is_file(self, temp_dir):
        f = temp_dir / "file.txt"
        f.write_bytes(b"x")
        with pytest.raises(RuntimeError, match="Not a directory"):
            FileScannerImpl([str(f)]).validate_roots()

    def test_unreadable_root(self, temp_dir):
        with mock.patch("ducky.core.scanner.os.access", return_value=False):
            with pytest.raises(RuntimeError, match="not readable"):
                FileScannerImpl([str(temp_dir)]).validate_roots()

    def test_valid_roots(self, temp_dir):
        (temp_dir / "a").mkdir()
        FileScannerImpl([str(temp_dir), str(temp_dir / "a")]).validate_roots()
