"""
Shared fixtures for duplicate detection tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from pathlib import Path
from typing import Dict
import sys

# Make the src/ layout importable when the package is not installed
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from ducky.core.models import FileRecord


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for deduplication scenarios:
    - 3 identical 1KB files (one in a subdirectory)
    - 2 identical 2KB files
    - 2 unique files (sizes of their own)
    - 1 empty file
    - 1 hidden file with duplicate content
    - 1 file with .tmp extension holding duplicate content
    """
    files = {}

    # Duplicate group #1 (1KB of 'A')
    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    # Duplicate pair #2 (2KB of 'B')
    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.txt"
    files["dup2_b"] = temp_dir / "dup2_b.txt"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    # Unique files
    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = temp_dir / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")

    files["hidden"] = temp_dir / ".hidden.txt"
    files["hidden"].write_bytes(content_b)

    files["filtered"] = temp_dir / "ignore.tmp"
    files["filtered"].write_bytes(content_b)

    # Subdirectory with duplicates
    subdir = temp_dir / "subdir"
    subdir.mkdir()
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)  # Same as dup1_a/b

    return files


def make_record(path: Path) -> FileRecord:
    """FileRecord for an existing file, with real size/device/inode."""
    return FileRecord.from_path(str(path))


@pytest.fixture
def records_for():
    """Factory: records_for(*paths) -> list of FileRecords in the given order."""
    def _factory(*paths):
        return [make_record(p) for p in paths]
    return _factory
