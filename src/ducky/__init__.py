"""
ducky: fast duplicate file finder.

Core features:
- Progressive partitioning: size, then an xxHash64 digest of the first N bytes, then a BLAKE3 digest of the whole file
- Deterministic output: groups and members are ordered by size and byte-wise path
- Optional delete / hardlink actions, dry run unless confirmed
- CLI interface with human, JSON and summary-JSON output
"""

from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("ducky")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from ducky.commands import DeduplicationCommand, RunResult
from ducky.core import (
    ActionPolicy, DeduplicationParams, DuplicateGroup, FileRecord, RunSummary, TimingReport)
from ducky.utils.convert_utils import ConvertUtils
from ducky.services.duplicate_service import DuplicateService
from ducky.services.report_service import ReportService

__all__ = [
    "DeduplicationCommand",
    "RunResult",
    "ActionPolicy",
    "DeduplicationParams",
    "DuplicateGroup",
    "FileRecord",
    "RunSummary",
    "TimingReport",
    "ConvertUtils",
    "DuplicateService",
    "ReportService",
    "__version__",
]
