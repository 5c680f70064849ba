"""
Tests for FileGrouperImpl: partitioning with singleton discard and
error isolation at the hashing seam.
"""
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest

from ducky.core.errors import ErrorCollector
from ducky.core.grouper import FileGrouperImpl
from ducky.core.hasher import HasherImpl
from ducky.core.models import FileRecord, Stage


class TestGroupBySize:

    def test_drops_singletons(self):
        files = [FileRecord("/a", 10), FileRecord("/b", 10), FileRecord("/c", 20)]
        groups = FileGrouperImpl().group_by_size(files)
        assert list(groups) == [10]
        assert [f.path for f in groups[10]] == ["/a", "/b"]

    def test_no_io(self):
        """Size grouping must not open any file."""
        files = [FileRecord("/nonexistent/a", 5), FileRecord("/nonexistent/b", 5)]
        with mock.patch("builtins.open") as mocked_open:
            groups = FileGrouperImpl().group_by_size(files)
        mocked_open.assert_not_called()
        assert len(groups[5]) == 2


class TestGroupByHash:

    def test_splits_by_content(self, tmp_path, records_for):
        for name, content in [("a", b"AAAA"), ("b", b"AAAA"), ("c", b"CCCC")]:
            (tmp_path / name).write_bytes(content)
        files = records_for(tmp_path / "a", tmp_path / "b", tmp_path / "c")

        groups = FileGrouperImpl().group_by_full_hash(files)
        assert len(groups) == 1
        assert sorted(f.name for f in next(iter(groups.values()))) == ["a", "b"]

    def test_quick_hash_uses_prefix_only(self, tmp_path, records_for):
        (tmp_path / "a").write_bytes(b"HEAD" + b"1" * 10)
        (tmp_path / "b").write_bytes(b"HEAD" + b"2" * 10)
        files = records_for(tmp_path / "a", tmp_path / "b")
        grouper = FileGrouperImpl(HasherImpl(quick_bytes=4))
        assert len(grouper.group_by_quick_hash(files)) == 1
        assert grouper.group_by_full_hash(files) == {}

    def test_unreadable_file_is_recorded_and_dropped(self, tmp_path, records_for):
        """A failing read removes the file from its bucket; the rest still group."""
        for name in ("a", "b", "c"):
            (tmp_path / name).write_bytes(b"same")
        files = records_for(tmp_path / "a", tmp_path / "b", tmp_path / "c")
        errors = ErrorCollector()
        hasher = HasherImpl()
        real = hasher.compute_full_hash

        def flaky(record):
            if record.name == "b":
                raise PermissionError(13, "Permission denied", record.path)
            return real(record)

        with mock.patch.object(hasher, "compute_full_hash", side_effect=flaky):
            groups = FileGrouperImpl(hasher, errors=errors).group_by_full_hash(files)

        members = next(iter(groups.values()))
        assert [f.name for f in members] == ["a", "c"]
        assert len(errors) == 1
        assert errors.errors[0].stage is Stage.FULL_HASH
        assert errors.errors[0].path.endswith("b")

    def test_parallel_result_matches_serial(self, tmp_path, records_for):
        paths = []
        for i in range(12):
            p = tmp_path / f"f{i:02d}"
            p.write_bytes(b"X" * 256 if i % 2 else b"Y" * 256)
            paths.append(p)
        files = records_for(*paths)

        serial = FileGrouperImpl(workers=1).group_by_full_hash(files)
        parallel = FileGrouperImpl(workers=4).group_by_full_hash(files)
        assert serial == parallel


class TestPartitionByDigest:
    """Every candidate group of a stage is hashed on one shared pool."""

    @pytest.fixture
    def pairs(self, tmp_path, records_for):
        groups = []
        for i in range(5):
            for side in ("x", "y"):
                (tmp_path / f"{i}{side}").write_bytes(bytes([i]) * 64)
            groups.append(records_for(tmp_path / f"{i}x", tmp_path / f"{i}y"))
        return groups

    def test_one_pool_for_all_groups(self, pairs):
        with mock.patch("ducky.core.grouper.ThreadPoolExecutor", wraps=ThreadPoolExecutor) as pool:
            partitions = list(FileGrouperImpl(workers=4).partition_by_digest(pairs, Stage.FULL_HASH))

        pool.assert_called_once_with(max_workers=4)
        assert len(partitions) == 5
        assert [len(p) for p in partitions] == [1] * 5

    def test_partitions_follow_input_groups(self, pairs):
        partitions = list(FileGrouperImpl(workers=3).partition_by_digest(pairs, Stage.QUICK_HASH))
        for group, partition in zip(pairs, partitions):
            assert list(partition.values()) == [group]

    def test_no_reads_after_stop(self, pairs):
        hasher = HasherImpl()
        grouper = FileGrouperImpl(hasher)
        with mock.patch.object(hasher, "compute_full_hash") as spy:
            partitions = list(grouper.partition_by_digest(pairs, Stage.FULL_HASH, stopped_flag=lambda: True))
        spy.assert_not_called()
        assert partitions == [{}] * 5
