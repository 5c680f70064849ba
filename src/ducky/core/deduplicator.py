"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

deduplicator.py
Implements the detection pipeline:
    records → size groups → quick-hash buckets → full-hash buckets → DuplicateGroups
Data only flows forward; ordering is decided once, by the GroupAssembler.
"""
import logging
import time
from typing import Iterable, List, Optional, Tuple

from ducky.core.assembler import GroupAssembler
from ducky.core.errors import ErrorCollector
from ducky.core.grouper import FileGrouperImpl
from ducky.core.hasher import HasherImpl
from ducky.core.interfaces import Deduplicator, ProgressCallback, StoppedFlag
from ducky.core.models import (
    DEFAULT_QUICK_BYTES, DeduplicationStats, DuplicateGroup, FileRecord, Stage)
from ducky.core.stages import FullHashStage, QuickHashStage, SizeStageImpl
from ducky.core.timing import TimingCollector

logger = logging.getLogger(__name__)


# =============================
# Main Deduplicator Class
# =============================
class DeduplicatorImpl(Deduplicator):
    """
    Runs the three partition stages in sequence and collects statistics,
    per-file errors and phase timings.
    """
    def __init__(
            self,
            grouper: Optional[FileGrouperImpl] = None,
            quick_bytes: int = DEFAULT_QUICK_BYTES,
            workers: int = 1,
            errors: Optional[ErrorCollector] = None,
            timing: Optional[TimingCollector] = None,
    ):
        self.errors = errors if errors is not None else (grouper.errors if grouper else ErrorCollector())
        self.grouper = grouper or FileGrouperImpl(
            HasherImpl(quick_bytes=quick_bytes), errors=self.errors, workers=workers)
        self.timing = timing or TimingCollector()

    def find_duplicates(
        self,
        files: Iterable[FileRecord],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Tuple[List[DuplicateGroup], DeduplicationStats]:
        """
        Main deduplication pipeline.
        Args:
            files: Records from a FileScanner (may be a lazy generator)
            stopped_flag: Function that returns True if the operation should stop.
            progress_callback: Reports progress per stage (stage, current, total).
        Returns:
            Tuple[List[DuplicateGroup], DeduplicationStats]; no groups when stopped.
        """
        stats = DeduplicationStats()
        total_start_time = time.monotonic()
        self.timing.start()

        size_stage = SizeStageImpl(self.grouper, self.errors)
        records = size_stage.collect(files, stopped_flag=stopped_flag)
        self._close(stats, Stage.DISCOVER, len(records or []), 0)
        if records is None:
            return [], stats

        size_groups = size_stage.group(records, progress_callback=progress_callback)
        self._close(stats, Stage.SIZE_GROUP, sum(len(g.files) for g in size_groups), len(size_groups))

        quick_buckets = QuickHashStage(self.grouper).process(
            size_groups, stopped_flag=stopped_flag, progress_callback=progress_callback)
        self._close(stats, Stage.QUICK_HASH, sum(len(b.files) for b in quick_buckets), len(quick_buckets))

        full_buckets = FullHashStage(self.grouper).process(
            quick_buckets, stopped_flag=stopped_flag, progress_callback=progress_callback)
        self._close(stats, Stage.FULL_HASH, sum(len(b.files) for b in full_buckets), len(full_buckets))

        stats.total_time = time.monotonic() - total_start_time
        if stopped_flag and stopped_flag():
            logger.info("Deduplication cancelled")
            return [], stats

        return GroupAssembler.assemble(full_buckets), stats

    def _close(self, stats: DeduplicationStats, stage: Stage, files: int, groups: int) -> None:
        duration_ms = self.timing.checkpoint(stage)
        stats.update_stage(
            stage_name=stage.value,
            groups_found=groups,
            files_processed=files,
            duration=duration_ms / 1000.0,
        )
        logger.debug(f"{stage.display_name}: {groups} groups / {files} files / {duration_ms}ms")
