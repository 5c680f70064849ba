"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Detection pipeline stages: progressive refinement from cheap to expensive keys.

CLASS HIERARCHY
---------------
SizeStageImpl   : Partitions the (lazy) record stream by exact size
HashStageBase   : Shared split-by-digest loop with cancellation and progress
QuickHashStage  : (size) → (size, digest of first N bytes)
FullHashStage   : (size, quick digest) → (size, whole-content digest)

STAGE CONTRACTS
---------------
Each stage implements a consistent `process()` interface that:
  • Accepts the candidate groups of the previous stage
  • Returns refined groups holding 2+ members each
  • Reports progress via callback (stage name, processed count, total count)
  • Respects cancellation via stopped_flag callback

A stage only starts after the previous one has returned, so no file is ever
fully read before its quick-hash bucket is known to hold another candidate.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ducky.core.errors import ErrorCollector
from ducky.core.grouper import FileGrouperImpl
from ducky.core.interfaces import HashStage, ProgressCallback, SizeStage, StoppedFlag
from ducky.core.models import (
    FileRecord, FullHashBucket, QuickHashBucket, SizeGroup, Stage)

logger = logging.getLogger(__name__)


class SizeStageImpl(SizeStage):
    def __init__(self, grouper: FileGrouperImpl, errors: Optional[ErrorCollector] = None):
        self.grouper = grouper
        self.errors = errors if errors is not None else grouper.errors
        self.files_seen = 0

    def process(
            self,
            files: Iterable[FileRecord],
            stopped_flag: Optional[StoppedFlag] = None,
            progress_callback: Optional[ProgressCallback] = None
    ) -> List[SizeGroup]:
        """
        Group by file size.
        Returns SizeGroups with 2+ files, ordered by size.
        """
        if stopped_flag and stopped_flag():
            return []

        unique = self.collect(files, stopped_flag)
        if unique is None:
            return []
        return self.group(unique, progress_callback)

    def group(
            self,
            records: List[FileRecord],
            progress_callback: Optional[ProgressCallback] = None
    ) -> List[SizeGroup]:
        size_groups = self.grouper.group_by_size(records)
        groups = [SizeGroup(size=size, files=files_list)
                  for size, files_list in sorted(size_groups.items())]

        if progress_callback:
            progress_callback(Stage.SIZE_GROUP.display_name, len(records), len(records))

        logger.debug(f"Size stage: {len(records)} files -> {len(groups)} groups")
        return groups

    def collect(self, files: Iterable[FileRecord], stopped_flag: Optional[StoppedFlag] = None) -> Optional[List[FileRecord]]:
        """
        Drain the record stream, keeping one record per path.
        A source that fails midway ends discovery; what it produced is kept.
        Returns None when cancelled.
        """
        seen: Dict[str, FileRecord] = {}
        iterator = iter(files)
        while True:
            if stopped_flag and stopped_flag():
                return None
            try:
                record = next(iterator)
            except StopIteration:
                break
            except OSError as e:
                self.errors.record(getattr(e, "filename", None) or "<source>", Stage.DISCOVER, e)
                break
            if record.path in seen:
                logger.debug(f"Ignoring repeated path: {record.path}")
                continue
            seen[record.path] = record
        self.files_seen = len(seen)
        return list(seen.values())


class HashStageBase(HashStage):
    """
    Splits every incoming group by a digest and discards singleton buckets.
    """
    stage: Stage

    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def get_stage_name(self) -> str:
        return self.stage.display_name

    def _make_bucket(self, size: int, digest: bytes, files: List[FileRecord]):
        raise NotImplementedError

    def process(
            self,
            groups: List,
            stopped_flag: Optional[StoppedFlag] = None,
            progress_callback: Optional[ProgressCallback] = None
    ) -> List:
        if stopped_flag and stopped_flag():
            return []

        buckets = []
        total_files = sum(len(group.files) for group in groups)
        processed_files = 0

        partitions = self.grouper.partition_by_digest(
            [group.files for group in groups], self.stage, stopped_flag=stopped_flag)
        try:
            for group in groups:
                if stopped_flag and stopped_flag():
                    return []

                for digest, files in next(partitions).items():
                    buckets.append(self._make_bucket(group.size, digest, files))

                processed_files += len(group.files)
                if progress_callback:
                    progress_callback(self.get_stage_name(), processed_files, total_files)
        finally:
            partitions.close()

        logger.debug(f"{self.get_stage_name()}: {total_files} files -> {len(buckets)} buckets")
        return buckets


class QuickHashStage(HashStageBase):
    stage = Stage.QUICK_HASH

    def _make_bucket(self, size: int, digest: bytes, files: List[FileRecord]) -> QuickHashBucket:
        return QuickHashBucket(size=size, digest=digest, files=files)


class FullHashStage(HashStageBase):
    stage = Stage.FULL_HASH

    def _make_bucket(self, size: int, digest: bytes, files: List[FileRecord]) -> FullHashBucket:
        return FullHashBucket(size=size, digest=digest, files=files)
