"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/actions.py
Turns confirmed duplicate groups into filesystem mutations.

The first member of a group (in path order) is canonical and is never touched.
Every other member ends in exactly one state:
    PLANNED  - dry run, the action would be applied
    APPLIED  - the action happened
    SKIPPED  - a guard refused it (same inode, cross device); not an error
    FAILED   - a guard passed but the mutation raised; recorded, run continues
"""

import logging
import threading
from typing import Iterable, List, Optional

from ducky.core.models import (
    ActionOutcome, ActionPolicy, ActionResult, DuplicateGroup, FileRecord, SkipReason)
from ducky.services.file_service import FileService

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Applies an ActionPolicy to duplicate groups.
    Without `confirm` it never calls into the filesystem.
    """

    def __init__(
            self,
            policy: ActionPolicy = ActionPolicy.NONE,
            confirm: bool = False,
            use_trash: bool = False,
            file_service: Optional[FileService] = None,
    ):
        self.policy = policy
        self.confirm = confirm
        self.use_trash = use_trash
        self.file_service = file_service or FileService()
        self._lock = threading.Lock()

    @property
    def dry_run(self) -> bool:
        return not self.confirm

    def execute_all(self, groups: Iterable[DuplicateGroup]) -> List[ActionResult]:
        results: List[ActionResult] = []
        for group in groups:
            results.extend(self.execute(group))
        return results

    def execute(self, group: DuplicateGroup) -> List[ActionResult]:
        """Apply the policy to one group. Groups are executed one at a time."""
        if self.policy is ActionPolicy.NONE:
            return []

        with self._lock:
            canonical = group.canonical
            if self.dry_run:
                return [self._plan(canonical, member) for member in group.redundant]

            canonical_error = self._check_canonical(group)
            results = []
            for member in group.redundant:
                if canonical_error is not None:
                    results.append(self._result(canonical, member, ActionOutcome.FAILED, error=canonical_error))
                    continue
                results.append(self._apply(canonical, member))
            return results

    def _guard(self, canonical: FileRecord, member: FileRecord) -> Optional[SkipReason]:
        """Guards decidable from discovery metadata alone."""
        if member.same_inode(canonical):
            return SkipReason.SAME_INODE
        if self.policy is ActionPolicy.HARDLINK and not member.same_device(canonical):
            return SkipReason.CROSS_DEVICE
        return None

    def _plan(self, canonical: FileRecord, member: FileRecord) -> ActionResult:
        reason = self._guard(canonical, member)
        if reason is not None:
            return self._result(canonical, member, ActionOutcome.SKIPPED, reason=reason)
        return self._result(canonical, member, ActionOutcome.PLANNED)

    def _check_canonical(self, group: DuplicateGroup) -> Optional[str]:
        """The kept copy must still exist with the group's size before anything else is removed."""
        try:
            _, _, size = self.file_service.identity(group.canonical.path)
        except OSError as e:
            logger.error(f"Canonical file unavailable, leaving group untouched: {e}")
            return f"canonical unavailable: {e}"
        if size != group.size:
            logger.error(f"Canonical file {group.canonical.path} changed size, leaving group untouched")
            return f"canonical changed: expected {group.size} bytes, found {size}"
        return None

    def _apply(self, canonical: FileRecord, member: FileRecord) -> ActionResult:
        reason = self._guard(canonical, member)
        if reason is None:
            try:
                reason = self._live_guard(canonical, member)
            except OSError as e:
                logger.warning(f"Cannot stat {member.path}: {e}")
                return self._result(canonical, member, ActionOutcome.FAILED, error=str(e))

        if reason is not None:
            logger.info(f"Skipping {member.path}: {reason.value}")
            return self._result(canonical, member, ActionOutcome.SKIPPED, reason=reason)

        try:
            if self.policy is ActionPolicy.DELETE:
                if self.use_trash:
                    self.file_service.move_to_trash(member.path)
                else:
                    self.file_service.remove_file(member.path)
            else:
                self.file_service.replace_with_hardlink(canonical.path, member.path)
        except OSError as e:
            logger.warning(f"Failed to {self.policy.value} {member.path}: {e}")
            return self._result(canonical, member, ActionOutcome.FAILED, error=str(e))

        return self._result(canonical, member, ActionOutcome.APPLIED)

    def _live_guard(self, canonical: FileRecord, member: FileRecord) -> Optional[SkipReason]:
        """Re-check identity on disk right before mutating: links may have changed since discovery."""
        c_dev, c_ino, _ = self.file_service.identity(canonical.path)
        m_dev, m_ino, _ = self.file_service.identity(member.path)
        if (c_dev, c_ino) == (m_dev, m_ino):
            return SkipReason.SAME_INODE
        if self.policy is ActionPolicy.HARDLINK and c_dev != m_dev:
            return SkipReason.CROSS_DEVICE
        return None

    def _result(
            self,
            canonical: FileRecord,
            member: FileRecord,
            outcome: ActionOutcome,
            reason: Optional[SkipReason] = None,
            error: Optional[str] = None,
    ) -> ActionResult:
        return ActionResult(
            path=member.path,
            canonical=canonical.path,
            policy=self.policy,
            outcome=outcome,
            reason=reason,
            error=error,
        )
