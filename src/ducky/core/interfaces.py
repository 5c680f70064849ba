"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the deduplication system.
These protocols enforce structural typing using Python's `typing.Protocol` to ensure
consistency across modules while maintaining flexibility and modularity.

Key Components:
---------------
- HashAlgorithm: Streaming hash function factory (xxHash64, BLAKE3, ...).
- Hasher: Computes the quick (prefix) and full digests of a file.
- FileScanner: Produces FileRecords lazily from root directories.
- FileGrouper: Partitions records by size or digest, discarding singletons.
- SizeStage / HashStage: Individual stages of the detection pipeline.
- Deduplicator: The engine coordinating all stages.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from ducky.core.models import (
    DeduplicationStats,
    DuplicateGroup,
    FileRecord,
    SizeGroup,
    Stage,
)

ProgressCallback = Callable[[str, int, Optional[int]], None]
StoppedFlag = Callable[[], bool]


class HashState(Protocol):
    def update(self, data: bytes) -> Any: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for streaming hash algorithms.

    Allows plugging in different hashing functions like xxHash or BLAKE3
    without affecting the rest of the deduplication logic.
    """
    name: str

    def new(self) -> HashState:
        """Returns a fresh incremental hashing state."""
        ...


class Hasher(Protocol):
    """Interface for hashing a bounded prefix or the whole content of a file."""
    def compute_quick_hash(self, file: FileRecord) -> bytes: ...
    def compute_full_hash(self, file: FileRecord) -> bytes: ...


class FileScanner(Protocol):
    """
    Interface for walking file systems and collecting file metadata.
    """
    def validate_roots(self) -> None:
        """Raise RuntimeError if any root cannot be scanned at all."""
        ...

    def scan(
        self,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Iterator[FileRecord]:
        """
        Lazily yield a record for every file that passes the filters.
        """
        ...


class FileGrouper(Protocol):
    """
    Interface for partitioning records by an equivalence key.
    Every returned group has at least two members.
    """
    def group_by_size(self, files: Iterable[FileRecord]) -> Dict[int, List[FileRecord]]: ...

    def group_by_quick_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]: ...

    def group_by_full_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]: ...

    def partition_by_digest(
            self,
            groups: List[List[FileRecord]],
            stage: Stage,
            stopped_flag: Optional[StoppedFlag] = None,
    ) -> Iterator[Dict[bytes, List[FileRecord]]]: ...


# =============================
# Stage Interfaces
# =============================

class SizeStage(Protocol):
    def process(
        self,
        files: Iterable[FileRecord],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> List[SizeGroup]:
        """
        Group records by exact size.

        Returns:
            List of groups where each contains 2+ files of the same size.
        """
        ...


class HashStage(Protocol):
    def get_stage_name(self) -> str:
        """Return the name of this stage (used in logging and stats)."""
        ...

    def process(
        self,
        groups: List[Any],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> List[Any]:
        """
        Split each incoming group by a digest and drop singleton buckets.
        """
        ...


class Deduplicator(Protocol):
    """
    Interface for the main deduplication engine.

    Coordinates size → quick hash → full hash → assembly.
    """
    def find_duplicates(
        self,
        files: Iterable[FileRecord],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Tuple[List[DuplicateGroup], DeduplicationStats]:
        ...
