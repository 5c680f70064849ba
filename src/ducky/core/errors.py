"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Run-level error bookkeeping shared by the hashing workers.
"""

import logging
import threading
from typing import List

from ducky.core.models import FileError, Stage

logger = logging.getLogger(__name__)


class FileChangedError(OSError):
    """The file no longer matches the metadata recorded at discovery."""


class ErrorCollector:
    """
    Collects per-file I/O errors from concurrent workers.
    All mutation happens under a single lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._errors: List[FileError] = []

    def record(self, path: str, stage: Stage, exc: BaseException) -> FileError:
        error = FileError(path=path, stage=stage, message=str(exc))
        with self._lock:
            self._errors.append(error)
        logger.warning(f"Skipping {path} ({stage.value}): {exc}")
        return error

    @property
    def errors(self) -> List[FileError]:
        """Snapshot sorted by path so reports do not depend on worker timing."""
        with self._lock:
            return sorted(self._errors, key=lambda e: (e.path, e.stage.value))

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)
