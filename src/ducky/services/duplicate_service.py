from typing import Iterable, Optional, Sequence

from ducky.core.models import (
    ActionOutcome, ActionResult, DuplicateGroup, FileError, RunSummary, SkipReason)


class DuplicateService:
    @staticmethod
    def reclaimable_bytes(groups: Iterable[DuplicateGroup]) -> int:
        """Bytes freed by keeping one copy per group: sum of size × (count − 1)."""
        return sum(group.reclaimable_bytes for group in groups)

    @staticmethod
    def summarize(
            groups: Sequence[DuplicateGroup],
            action_results: Optional[Iterable[ActionResult]] = None,
            file_errors: Optional[Sequence[FileError]] = None,
    ) -> RunSummary:
        """
        Aggregate a run into a RunSummary.
        Only FAILED actions count as errors; guard skips are tallied separately.
        """
        summary = RunSummary(
            groups=len(groups),
            files=sum(len(g.members) for g in groups),
            reclaimable_bytes=DuplicateService.reclaimable_bytes(groups),
            file_errors=len(file_errors or []),
        )
        for result in action_results or []:
            if result.outcome is ActionOutcome.APPLIED:
                summary.applied += 1
            elif result.outcome is ActionOutcome.PLANNED:
                summary.planned += 1
            elif result.outcome is ActionOutcome.FAILED:
                summary.errors += 1
            elif result.reason is SkipReason.SAME_INODE:
                summary.skipped_same_inode += 1
            elif result.reason is SkipReason.CROSS_DEVICE:
                summary.skipped_cross_device += 1
        return summary
