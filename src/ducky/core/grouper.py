"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Implements the partition operations of the pipeline.

Every grouping is a partition over an equivalence key that drops singleton
classes. Digest computation is fanned out to a thread pool, but results are
collected in input order, so the output never depends on which worker
finished first.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from itertools import islice
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ducky.core.errors import ErrorCollector
from ducky.core.hasher import HasherImpl
from ducky.core.interfaces import FileGrouper, Hasher, StoppedFlag
from ducky.core.models import FileRecord, Stage

logger = logging.getLogger(__name__)


class FileGrouperImpl(FileGrouper):
    """
    A concrete implementation of FileGrouper.
    Uses an injected Hasher instance for flexibility and testability.
    """

    def __init__(
            self,
            hasher: Hasher = None,
            errors: Optional[ErrorCollector] = None,
            workers: int = 1,
    ):
        self.hasher = hasher or HasherImpl()
        self.errors = errors if errors is not None else ErrorCollector()
        self.workers = max(1, workers)

    def group_by_size(self, files: Iterable[FileRecord]) -> Dict[int, List[FileRecord]]:
        """Groups records by their size. No I/O."""
        return self._group_by(files, lambda f: f.size)

    def group_by_quick_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]:
        """Groups records by the digest of their first N bytes."""
        return list(self.partition_by_digest([files], Stage.QUICK_HASH))[0]

    def group_by_full_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]:
        """Groups records by their whole-content digest."""
        return list(self.partition_by_digest([files], Stage.FULL_HASH))[0]

    def partition_by_digest(
            self,
            groups: List[List[FileRecord]],
            stage: Stage,
            stopped_flag: Optional[StoppedFlag] = None,
    ) -> Iterator[Dict[bytes, List[FileRecord]]]:
        """
        Splits each candidate group by its stage digest, yielding one partition
        per group in input order.

        All digests of the call are computed on a single pool, so small groups
        still share the full worker count. Once `stopped_flag` turns true no
        new read is started.
        """
        if stage is Stage.QUICK_HASH:
            digest_func = self.hasher.compute_quick_hash
        else:
            digest_func = self.hasher.compute_full_hash

        flat = [f for files in groups for f in files]
        digests = self._digests(flat, digest_func, stage, stopped_flag)
        for files in groups:
            pairs = [(f, d) for f, d in zip(files, islice(digests, len(files))) if d is not None]
            keys = {id(f): d for f, d in pairs}
            yield self._group_by((f for f, _ in pairs), lambda f: keys[id(f)])

    def _digests(
            self,
            files: List[FileRecord],
            digest_func: Callable[[FileRecord], bytes],
            stage: Stage,
            stopped_flag: Optional[StoppedFlag],
    ) -> Iterator[Optional[bytes]]:
        """
        Digest per record, in input order. Records whose read fails are
        recorded in the error collector and yield None.
        """
        def safe_digest(file: FileRecord) -> Optional[bytes]:
            if stopped_flag and stopped_flag():
                return None
            try:
                return digest_func(file)
            except OSError as e:
                self.errors.record(file.path, stage, e)
                return None

        if self.workers == 1 or len(files) < 2:
            for file in files:
                yield safe_digest(file)
        else:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(files))) as executor:
                yield from executor.map(safe_digest, files)

    @staticmethod
    def _group_by(files: Iterable[FileRecord], key_func: Callable[[FileRecord], Any]) -> Dict[Any, List[FileRecord]]:
        """
        Helper method to group records by any computed key.
        Args:
            files: Records to group
            key_func: Function that computes a hashable key from a FileRecord
        Returns:
            Dict[key, List[FileRecord]] holding only keys with 2+ records
        """
        groups = defaultdict(list)
        for file in files:
            groups[key_func(file)].append(file)

        return {key: group for key, group in groups.items() if len(group) >= 2}
