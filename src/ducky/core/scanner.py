"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements the directory walker feeding the detection pipeline.
Features:
- Walks one or more roots with os.walk
- Skips hidden entries unless asked not to
- Does not follow symlinks unless asked to
- Applies minimum size, extension and excluded-directory filters
- Yields FileRecords lazily so grouping can start while walking
"""

import logging
import os
import stat
import time
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

# Local imports
from ducky.core.interfaces import FileScanner
from ducky.core.errors import ErrorCollector
from ducky.core.models import FileRecord, Stage


class FileScannerImpl(FileScanner):
    """
    Scans directories recursively and filters files based on size and extensions.

    Attributes:
        roots: Directories to scan
        min_size: Minimum file size in bytes
        extensions: Allowed file extensions (e.g., [".txt", ".jpg"]); empty = all
        include_hidden: Also walk dot-files and dot-directories
        follow_symlinks: Follow symlinked directories and files
        excluded_dirs: Directories pruned from the walk
    """

    def __init__(
        self,
        roots: List[str],
        min_size: int = 0,
        extensions: Optional[List[str]] = None,
        include_hidden: bool = False,
        follow_symlinks: bool = False,
        excluded_dirs: Optional[List[str]] = None,
        errors: Optional[ErrorCollector] = None
    ):
        if isinstance(roots, str):
            roots = [roots]
        self.roots = [os.path.abspath(r) for r in roots]
        self.min_size = min_size or 0
        self.extensions = [self._normalize_ext(e) for e in extensions] if extensions else []
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.excluded_dirs = [os.path.abspath(d) for d in excluded_dirs] if excluded_dirs else []
        self.errors = errors
        self.walk_errors = 0

    @staticmethod
    def _normalize_ext(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith(".") else f".{ext}"

    def validate_roots(self) -> None:
        """
        Structural check run before the pipeline starts.
        Raises RuntimeError for a root that is missing, not a directory or unreadable.
        """
        for root in self.roots:
            root_path = Path(root)
            if not root_path.exists():
                error_msg = f"Directory does not exist: {root}"
                logger.error(error_msg)
                raise RuntimeError(error_msg)
            if not root_path.is_dir():
                error_msg = f"Not a directory: {root}"
                logger.error(error_msg)
                raise RuntimeError(error_msg)
            if not os.access(root, os.R_OK | os.X_OK):
                error_msg = f"Directory is not readable: {root}"
                logger.error(error_msg)
                raise RuntimeError(error_msg)

    def scan(self,
             stopped_flag: Optional[Callable[[], bool]] = None,
             progress_callback: Optional[Callable[[str, int, object], None]] = None) -> Iterator[FileRecord]:
        """
        Lazily yields a FileRecord for every matching regular file.
        Paths are yielded once even when roots overlap.
        """
        logger.debug(f"Starting scan of {len(self.roots)} root(s)")
        logger.debug(f"Filters: min_size={self.min_size}, extensions={self.extensions}, "
                      f"hidden={self.include_hidden}, follow_symlinks={self.follow_symlinks}")

        # Progress throttling: update every N files to reduce callback overhead
        progress_interval = 5000
        progress_counter = 0
        processed_files = 0
        yielded: Set[str] = set()
        visited_dirs: Set[Tuple[int, int]] = set()
        start_time = time.monotonic()

        for root in self.roots:
            for dirpath, dirs, files in os.walk(root, onerror=self._on_walk_error,
                                                followlinks=self.follow_symlinks):
                if stopped_flag and stopped_flag():
                    logger.debug("Scan interrupted")
                    return

                if self.follow_symlinks and not self._first_visit(dirpath, visited_dirs):
                    dirs[:] = []
                    continue

                # Pre-filter subdirectories BEFORE os.walk enters them
                dirs[:] = sorted(d for d in dirs if self._prefilter_dirs(os.path.join(dirpath, d), d))

                for filename in sorted(files):
                    path = os.path.join(dirpath, filename)
                    processed_files += 1
                    progress_counter += 1
                    if progress_callback and progress_counter >= progress_interval:
                        progress_callback('scanning', processed_files, None)
                        progress_counter = 0

                    if path in yielded:
                        continue
                    record = self._process_file(path, filename)
                    if record is not None:
                        yielded.add(path)
                        yield record

        if progress_callback and progress_counter > 0:
            progress_callback('scanning', processed_files, None)

        logger.debug(f"Scan completed in {time.monotonic() - start_time:.2f}s, "
                     f"{len(yielded)} matching files")

    def _on_walk_error(self, error: OSError) -> None:
        self.walk_errors += 1
        if self.errors is not None:
            self.errors.record(error.filename or "<walk>", Stage.DISCOVER, error)
        else:
            logger.warning(f"Cannot read directory {error.filename}: {error.strerror or error}")

    def _first_visit(self, dirpath: str, visited: Set[Tuple[int, int]]) -> bool:
        """Symlink loops would otherwise be walked forever."""
        try:
            st = os.stat(dirpath)
        except OSError:
            return False
        key = (st.st_dev, st.st_ino)
        if key in visited:
            logger.debug(f"Already visited, skipping: {dirpath}")
            return False
        visited.add(key)
        return True

    def _is_hidden(self, name: str) -> bool:
        return not self.include_hidden and name.startswith(".")

    def _is_excluded_directory(self, path: str) -> bool:
        """Check if path is within an excluded directory."""
        if not self.excluded_dirs:
            return False
        path_str = os.path.abspath(path)
        for excluded_dir in self.excluded_dirs:
            normalized_excluded = os.path.normpath(excluded_dir)
            if path_str.startswith(normalized_excluded + os.sep) or \
                    path_str == normalized_excluded:
                return True
        return False

    def _prefilter_dirs(self, path: str, name: str) -> bool:
        if self._is_hidden(name):
            return False
        if self._is_excluded_directory(path):
            logger.debug(f"Skipping excluded directory: {path}")
            return False
        if not self.follow_symlinks and os.path.islink(path):
            logger.debug(f"Skipping symlinked directory: {path}")
            return False
        return True

    def _process_file(self, path: str, filename: str) -> Optional[FileRecord]:
        """
        Stat one file and return a FileRecord if it passes all filters.
        Files that vanish or cannot be stat-ed are skipped.
        """
        if self._is_hidden(filename):
            return None

        if not self._extension_passes(filename):
            return None

        try:
            st = os.stat(path, follow_symlinks=self.follow_symlinks)
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return None

        # Unfollowed symlinks stat as links, not regular files
        if not stat.S_ISREG(st.st_mode):
            return None

        if st.st_size < self.min_size:
            return None

        return FileRecord(path=path, size=st.st_size, device=st.st_dev, inode=st.st_ino)

    def _extension_passes(self, filename: str) -> bool:
        if not self.extensions:
            return True
        return os.path.splitext(filename)[1].lower() in self.extensions
