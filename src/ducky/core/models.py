"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for duplicate detection and space reclamation.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


DEFAULT_QUICK_BYTES = 64 * 1024


# =============================
# Enums
# =============================

class ActionPolicy(Enum):
    """
    What to do with the non-canonical members of a duplicate group.
    """
    NONE = "none"
    DELETE = "delete"
    HARDLINK = "hardlink"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            ActionPolicy.NONE: "Report only",
            ActionPolicy.DELETE: "Delete",
            ActionPolicy.HARDLINK: "Hardlink",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            ActionPolicy.NONE:
                "Inspect only, never touch the filesystem",
            ActionPolicy.DELETE:
                "Keep the first path of each group, remove the others",
            ActionPolicy.HARDLINK:
                "Keep the first path of each group, replace the others with hard links to it",
        }
        return mapping.get(self, self.value)

    @property
    def mutates(self) -> bool:
        return self is not ActionPolicy.NONE

    def __repr__(self) -> str:
        return self.value


class ActionOutcome(Enum):
    PLANNED = "planned"
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(Enum):
    SAME_INODE = "same-inode"
    CROSS_DEVICE = "cross-device"


class Stage(str, Enum):
    DISCOVER = "discover"
    SIZE_GROUP = "size_group"
    QUICK_HASH = "quick_hash"
    FULL_HASH = "full_hash"
    ACTIONS = "actions"

    @property
    def display_name(self) -> str:
        mapping = {
            Stage.DISCOVER: "Discovery",
            Stage.SIZE_GROUP: "Size grouping",
            Stage.QUICK_HASH: "Quick Hash",
            Stage.FULL_HASH: "Full Hash",
            Stage.ACTIONS: "Actions",
        }
        return mapping[self]


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileRecord:
    """
    Normalized metadata of a single discovered file.
    Identity is (device, inode): two records with the same identity are
    the same underlying file, already hard-linked together.
    """
    path: str
    size: int  # in bytes
    device: int = 0
    inode: int = 0

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"File size cannot be negative: {self.path}")

    @classmethod
    def from_path(cls, path: str, follow_symlinks: bool = False) -> "FileRecord":
        """Stat a path and build a record from it. Raises OSError if the path is gone."""
        abs_path = os.path.abspath(path)
        st = os.stat(abs_path, follow_symlinks=follow_symlinks)
        return cls(path=abs_path, size=st.st_size, device=st.st_dev, inode=st.st_ino)

    @property
    def identity(self) -> Tuple[int, int]:
        return self.device, self.inode

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def same_inode(self, other: "FileRecord") -> bool:
        return self.identity == other.identity

    def same_device(self, other: "FileRecord") -> bool:
        return self.device == other.device

    def __repr__(self):
        return f"<FileRecord path={self.path}, size={self.size}>"


@dataclass
class SizeGroup:
    """Records sharing one exact size. Transient between stages."""
    size: int
    files: List[FileRecord]

    def __repr__(self):
        return f"<SizeGroup size={self.size}, count={len(self.files)}>"


@dataclass
class QuickHashBucket:
    """Records sharing (size, digest of the first N bytes)."""
    size: int
    digest: bytes
    files: List[FileRecord]

    def __repr__(self):
        return f"<QuickHashBucket size={self.size}, count={len(self.files)}>"


@dataclass
class FullHashBucket:
    """Records sharing (size, whole-content digest). Input of the GroupAssembler."""
    size: int
    digest: bytes
    files: List[FileRecord]


@dataclass(frozen=True)
class DuplicateGroup:
    """
    A confirmed set of byte-identical files.
    Members are sorted by path; the first member is the canonical one.
    """
    size: int
    digest: str
    members: Tuple[FileRecord, ...]

    def __post_init__(self):
        if len(self.members) < 2:
            raise ValueError("A duplicate group needs at least two members")
        if any(m.size != self.size for m in self.members):
            raise ValueError("Cannot put files of different size into one group")

    @property
    def canonical(self) -> FileRecord:
        return self.members[0]

    @property
    def redundant(self) -> Tuple[FileRecord, ...]:
        return self.members[1:]

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.members)

    @property
    def reclaimable_bytes(self) -> int:
        return self.size * (len(self.members) - 1)

    @property
    def paths(self) -> List[str]:
        return [m.path for m in self.members]

    def __repr__(self):
        return f"<DuplicateGroup size={self.size}, count={len(self.members)}>"


@dataclass(frozen=True)
class FileError:
    """A per-file I/O failure. Non-fatal: the file just leaves its bucket."""
    path: str
    stage: Stage
    message: str


@dataclass(frozen=True)
class ActionResult:
    """Outcome of the action planned for one non-canonical member."""
    path: str
    canonical: str
    policy: ActionPolicy
    outcome: ActionOutcome
    reason: Optional[SkipReason] = None
    error: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.outcome is ActionOutcome.FAILED


@dataclass
class RunSummary:
    groups: int = 0
    files: int = 0
    reclaimable_bytes: int = 0
    errors: int = 0  # FAILED actions only
    file_errors: int = 0
    applied: int = 0
    planned: int = 0
    skipped_same_inode: int = 0
    skipped_cross_device: int = 0

    @property
    def has_failures(self) -> bool:
        return self.errors > 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "groups": self.groups,
            "files": self.files,
            "reclaimable": self.reclaimable_bytes,
            "errors": self.errors,
            "file_errors": self.file_errors,
        }


@dataclass(frozen=True)
class TimingReport:
    """Per-phase durations in whole milliseconds."""
    discover_ms: int = 0
    size_group_ms: int = 0
    quick_hash_ms: int = 0
    full_hash_ms: int = 0
    actions_ms: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "discover_ms": self.discover_ms,
            "size_group_ms": self.size_group_ms,
            "quick_hash_ms": self.quick_hash_ms,
            "full_hash_ms": self.full_hash_ms,
            "actions_ms": self.actions_ms,
        }


class DeduplicationStats:
    """
    Statistics collected during the deduplication process.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

    def print_summary(self) -> str:
        lines = [
            "Deduplication Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: GROUPS / FILES / TIME"
        ]

        for stage, data in self.stage_stats.items():
            known = {s.value for s in Stage}
            label = Stage(stage).display_name if stage in known else stage.title()
            lines.append(f"{label}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        return "\n".join(lines)


"""
DTO for deduplication parameters with built-in validation.
Interface-agnostic: used by the CLI and by library callers.
"""
from ducky.utils.convert_utils import ConvertUtils


def _default_workers() -> int:
    return min(8, os.cpu_count() or 1)


@dataclass
class DeduplicationParams:
    """Parameters for a deduplication run with validation."""
    roots: List[str]
    min_size_bytes: int = 0
    quick_bytes: int = DEFAULT_QUICK_BYTES
    extensions: List[str] = field(default_factory=list)
    excluded_dirs: List[str] = field(default_factory=list)
    include_hidden: bool = False
    follow_symlinks: bool = False
    policy: ActionPolicy = ActionPolicy.NONE
    confirm: bool = False
    use_trash: bool = False
    workers: int = field(default_factory=_default_workers)

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if isinstance(self.roots, str):
            self.roots = [self.roots]
        if not self.roots or any(not r for r in self.roots):
            raise ValueError("At least one root directory is required")

        if self.min_size_bytes < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.quick_bytes < 0:
            raise ValueError("Quick-hash byte count cannot be negative")

        if self.workers < 1:
            raise ValueError("At least one worker is required")

        # Normalize extensions: ensure they start with dot and are lowercase
        normalized = []
        for ext in self.extensions:
            ext = ext.strip().lower()
            if ext and not ext.startswith('.'):
                ext = f".{ext}"
            if ext:
                normalized.append(ext)
        self.extensions = normalized

    @property
    def effective_policy(self) -> ActionPolicy:
        """The policy that will really mutate files: nothing without confirmation."""
        return self.policy if self.confirm else ActionPolicy.NONE

    @staticmethod
    def from_human_readable(
            roots: List[str],
            min_size_str: str = "0",
            quick_bytes_str: str = "64KB",
            extensions_str: str = "",
            excluded_dirs: Optional[List[str]] = None,
            policy: ActionPolicy = ActionPolicy.NONE,
            confirm: bool = False,
            **kwargs,
    ) -> 'DeduplicationParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        ext_list = [
            ext.strip() for ext in extensions_str.split(",") if ext.strip()
        ] if extensions_str else []

        return DeduplicationParams(
            roots=list(roots),
            min_size_bytes=ConvertUtils.human_to_bytes(min_size_str),
            quick_bytes=ConvertUtils.human_to_bytes(quick_bytes_str),
            extensions=ext_list,
            excluded_dirs=excluded_dirs or [],
            policy=policy,
            confirm=confirm,
            **kwargs,
        )
