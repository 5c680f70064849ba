"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/timing.py
Monotonic phase checkpoints.

Each phase duration is the delta between its own boundary and the boundary
recorded immediately before it. Boundaries are appended, never overwritten,
so two phases can never end up reporting the same baseline.
"""

import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from ducky.core.models import Stage, TimingReport


class TimingCollector:
    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or time.monotonic_ns
        self._lock = threading.Lock()
        self._boundaries: List[Tuple[Optional[Stage], int]] = []

    def start(self) -> None:
        with self._lock:
            self._boundaries = [(None, self._clock())]

    def checkpoint(self, stage: Stage) -> int:
        """
        Close `stage` at the current instant and return its duration in ms.
        Calling it before start() starts the collector implicitly.
        """
        with self._lock:
            now = self._clock()
            if not self._boundaries:
                self._boundaries.append((None, now))
            previous = self._boundaries[-1][1]
            self._boundaries.append((stage, now))
        return max(0, now - previous) // 1_000_000

    def durations(self) -> Dict[Stage, int]:
        """Milliseconds per closed stage; a stage closed twice accumulates."""
        with self._lock:
            boundaries = list(self._boundaries)
        result: Dict[Stage, int] = {}
        for (_, before), (stage, after) in zip(boundaries, boundaries[1:]):
            result[stage] = result.get(stage, 0) + max(0, after - before) // 1_000_000
        return result

    def report(self) -> TimingReport:
        d = self.durations()
        return TimingReport(
            discover_ms=d.get(Stage.DISCOVER, 0),
            size_group_ms=d.get(Stage.SIZE_GROUP, 0),
            quick_hash_ms=d.get(Stage.QUICK_HASH, 0),
            full_hash_ms=d.get(Stage.FULL_HASH, 0),
            actions_ms=d.get(Stage.ACTIONS, 0),
        )
