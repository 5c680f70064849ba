"""
Unified command orchestrator for a deduplication run.
This is the single place where the workflow is wired up; the CLI and library callers both use it.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional

from ducky.core.actions import ActionExecutor
from ducky.core.deduplicator import DeduplicatorImpl
from ducky.core.errors import ErrorCollector
from ducky.core.grouper import FileGrouperImpl
from ducky.core.hasher import HasherImpl
from ducky.core.models import (
    ActionResult, DeduplicationParams, DeduplicationStats, DuplicateGroup, FileRecord,
    FileError, RunSummary, Stage, TimingReport)
from ducky.core.scanner import FileScannerImpl
from ducky.core.timing import TimingCollector
from ducky.services.duplicate_service import DuplicateService

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    groups: List[DuplicateGroup]
    summary: RunSummary
    timings: TimingReport
    stats: DeduplicationStats
    action_results: List[ActionResult] = field(default_factory=list)
    file_errors: List[FileError] = field(default_factory=list)
    cancelled: bool = False


class DeduplicationCommand:
    """
    Orchestrates the entire workflow:
    1. Validate roots (structural errors abort here, before any output)
    2. Stream records from the scanner into the detection pipeline
    3. Apply the action policy (dry run unless confirmed)
    4. Aggregate summary and timings

    Usage:
        params = DeduplicationParams(roots=["/data"], policy=ActionPolicy.HARDLINK, confirm=True)
        result = DeduplicationCommand().execute(params)
        if result.summary.has_failures:
            ...
    """

    def __init__(self, executor: Optional[ActionExecutor] = None):
        self._executor = executor

    @staticmethod
    def build_scanner(params: DeduplicationParams, errors: Optional[ErrorCollector] = None) -> FileScannerImpl:
        return FileScannerImpl(
            roots=params.roots,
            min_size=params.min_size_bytes,
            extensions=params.extensions,
            include_hidden=params.include_hidden,
            follow_symlinks=params.follow_symlinks,
            excluded_dirs=params.excluded_dirs,
            errors=errors,
        )

    def execute(
            self,
            params: DeduplicationParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None,
            records: Optional[Iterable[FileRecord]] = None,
            on_record: Optional[Callable[[FileRecord], None]] = None,
    ) -> RunResult:
        """
        Run a whole deduplication.

        Args:
            params: Validated parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if the run should stop)
            records: Optional pre-built record source; the scanner is used when omitted
            on_record: Called with every discovered record, in discovery order

        Raises:
            RuntimeError: If a root directory cannot be scanned at all
        """
        timing = TimingCollector()
        errors = ErrorCollector()

        if records is None:
            scanner = self.build_scanner(params, errors)
            scanner.validate_roots()
            records = scanner.scan(stopped_flag=stopped_flag, progress_callback=progress_callback)
        if on_record is not None:
            records = self._tap(records, on_record)

        grouper = FileGrouperImpl(
            HasherImpl(quick_bytes=params.quick_bytes), errors=errors, workers=params.workers)
        deduplicator = DeduplicatorImpl(grouper=grouper, errors=errors, timing=timing)

        groups, stats = deduplicator.find_duplicates(
            records, stopped_flag=stopped_flag, progress_callback=progress_callback)

        cancelled = bool(stopped_flag and stopped_flag())
        action_results: List[ActionResult] = []
        if cancelled:
            logger.info("Run cancelled, skipping action phase")
        else:
            executor = self._executor or ActionExecutor(
                policy=params.policy, confirm=params.confirm, use_trash=params.use_trash)
            if params.effective_policy is not params.policy:
                logger.info("No confirmation given: reporting planned actions only")
            action_results = executor.execute_all(groups)
        timing.checkpoint(Stage.ACTIONS)

        file_errors = errors.errors
        summary = DuplicateService.summarize(groups, action_results, file_errors)
        return RunResult(
            groups=groups,
            summary=summary,
            timings=timing.report(),
            stats=stats,
            action_results=action_results,
            file_errors=file_errors,
            cancelled=cancelled,
        )

    @staticmethod
    def _tap(records: Iterable[FileRecord], on_record: Callable[[FileRecord], None]) -> Iterator[FileRecord]:
        for record in records:
            on_record(record)
            yield record
