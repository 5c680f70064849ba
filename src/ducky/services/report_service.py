"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/report_service.py
Renders pipeline results as text. Pure functions: nothing here prints.
"""
import json
from typing import Iterable, List, Optional, Sequence

from ducky.core.models import (
    ActionOutcome, ActionPolicy, ActionResult, DuplicateGroup, RunSummary, TimingReport)
from ducky.utils.convert_utils import ConvertUtils


class ReportService:

    @staticmethod
    def render_human(groups: Sequence[DuplicateGroup], summary: RunSummary) -> str:
        """Group listing followed by a one-line total. Empty string when nothing was found."""
        if not groups:
            return ""
        lines = []
        for group in groups:
            lines.append(f"== {group.duplicate_count} duplicates of {ConvertUtils.bytes_to_human(group.size)} ==")
            lines.extend(f"  {path}" for path in group.paths)
        lines.append("")
        lines.append(ReportService.render_quiet(summary))
        return "\n".join(lines)

    @staticmethod
    def render_quiet(summary: RunSummary) -> str:
        return (f"Found {summary.groups} duplicate groups; "
                f"reclaimable: {ConvertUtils.bytes_to_human(summary.reclaimable_bytes)}")

    @staticmethod
    def groups_to_dicts(groups: Iterable[DuplicateGroup]) -> List[dict]:
        return [
            {"size": group.size, "hash": group.digest, "members": group.paths}
            for group in groups
        ]

    @staticmethod
    def render_json(groups: Sequence[DuplicateGroup]) -> str:
        return json.dumps(ReportService.groups_to_dicts(groups), indent=2)

    @staticmethod
    def render_summary_json(summary: RunSummary, timings: Optional[TimingReport] = None) -> str:
        data = summary.to_dict()
        data["timings"] = timings.to_dict() if timings is not None else None
        return json.dumps(data, indent=2)

    @staticmethod
    def render_timings(report: TimingReport) -> str:
        return "timings: " + " ".join(f"{key}={value}" for key, value in report.to_dict().items())

    @staticmethod
    def render_actions(results: Sequence[ActionResult], summary: RunSummary, policy: ActionPolicy) -> str:
        """One line per member that was not cleanly applied, then the counters."""
        lines = []
        for result in results:
            if result.outcome is ActionOutcome.SKIPPED:
                lines.append(f"{result.reason.value}: skipped {result.path} -> {result.canonical}")
            elif result.outcome is ActionOutcome.FAILED:
                lines.append(f"Failed to {policy.value} {result.path}: {result.error}")
            elif result.outcome is ActionOutcome.PLANNED:
                lines.append(f"would {policy.value} {result.path} (keeping {result.canonical})")

        deleted = summary.applied if policy is ActionPolicy.DELETE else 0
        linked = summary.applied if policy is ActionPolicy.HARDLINK else 0
        lines.append(
            f"actions: deleted={deleted} linked={linked} "
            f"skipped_same_inode={summary.skipped_same_inode} "
            f"skipped_cross_device={summary.skipped_cross_device} errors={summary.errors}"
        )
        return "\n".join(lines)

    @staticmethod
    def print_summary_line(summary: RunSummary) -> str:
        """Short human line that also mentions unreadable files."""
        line = ReportService.render_quiet(summary)
        if summary.file_errors:
            line += f" ({summary.file_errors} unreadable file(s) skipped)"
        return line
