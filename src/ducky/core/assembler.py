"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/assembler.py
Pure ordering logic for duplicate groups; zero dependencies outside core.

Ordering rules (applied once, after all hashing work is done):
1. Members inside a group: ascending path, compared as normalized bytes.
   The first member is the canonical file for every action.
2. Groups: descending size, then ascending first-member path,
   then ascending digest.
"""
import os
from typing import Iterable, List, Tuple

from ducky.core.models import DuplicateGroup, FileRecord, FullHashBucket


def path_sort_key(path: str) -> bytes:
    return os.fsencode(os.path.normpath(path))


class GroupAssembler:

    @staticmethod
    def sort_members(files: Iterable[FileRecord]) -> Tuple[FileRecord, ...]:
        return tuple(sorted(files, key=lambda f: path_sort_key(f.path)))

    @staticmethod
    def group_sort_key(group: DuplicateGroup):
        return -group.size, path_sort_key(group.canonical.path), group.digest

    @staticmethod
    def assemble(buckets: Iterable[FullHashBucket]) -> List[DuplicateGroup]:
        """Turn final buckets into sorted DuplicateGroups. Buckets with <2 files are dropped."""
        groups = [
            DuplicateGroup(
                size=bucket.size,
                digest=bucket.digest.hex(),
                members=GroupAssembler.sort_members(bucket.files),
            )
            for bucket in buckets
            if len(bucket.files) >= 2
        ]
        groups.sort(key=GroupAssembler.group_sort_key)
        return groups
