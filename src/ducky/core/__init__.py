"""
Core deduplication engine: scanner, hashers, grouper, pipeline and actions.

- FileScannerImpl: recursive directory traversal with size/extension/hidden filters
- HasherImpl + XXHashAlgorithmImpl / Blake3AlgorithmImpl: quick prefix and full content digests
- FileGrouperImpl: size and digest partitioning with singleton discard
- DeduplicatorImpl: multi-stage pipeline (size → quick hash → full hash → assembled groups)
- ActionExecutor: delete / hardlink of redundant members behind identity guards
- Models: FileRecord, DuplicateGroup, RunSummary and configuration objects

No I/O outside this package and services.file_service; suitable for CLI and library usage.
"""

from .scanner import FileScannerImpl
from .grouper import FileGrouperImpl
from .hasher import HasherImpl, XXHashAlgorithmImpl, Blake3AlgorithmImpl
from .deduplicator import DeduplicatorImpl
from .assembler import GroupAssembler
from .actions import ActionExecutor
from .timing import TimingCollector
from .errors import ErrorCollector, FileChangedError
from .models import (
    ActionOutcome, ActionPolicy, ActionResult, DeduplicationParams, DeduplicationStats,
    DuplicateGroup, FileError, FileRecord, RunSummary, SkipReason, Stage, TimingReport)

__all__ = [
    "FileScannerImpl",
    "FileGrouperImpl",
    "HasherImpl",
    "XXHashAlgorithmImpl",
    "Blake3AlgorithmImpl",
    "DeduplicatorImpl",
    "GroupAssembler",
    "ActionExecutor",
    "TimingCollector",
    "ErrorCollector",
    "FileChangedError",
    "ActionOutcome",
    "ActionPolicy",
    "ActionResult",
    "DeduplicationParams",
    "DeduplicationStats",
    "DuplicateGroup",
    "FileError",
    "FileRecord",
    "RunSummary",
    "SkipReason",
    "Stage",
    "TimingReport",
]
