"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements file hashing utilities using FileRecord and pluggable hash algorithms.

Two digests are used per run:
- quick: xxHash64 over the first N bytes (cheap filter, not collision resistant)
- full: BLAKE3 over the whole content (duplicate confirmation)

Both read through a bounded buffer; no file is ever held in memory whole.
"""

import blake3
import xxhash

from ducky.core.errors import FileChangedError
from ducky.core.interfaces import HashAlgorithm, Hasher, HashState
from ducky.core.models import DEFAULT_QUICK_BYTES, FileRecord

DEFAULT_BUFFER_SIZE = 1024 * 1024


# Use the same way to implement and use any other hashing algorithm
class XXHashAlgorithmImpl(HashAlgorithm):
    name = "xxh64"

    def new(self) -> HashState:
        return xxhash.xxh64()


class Blake3AlgorithmImpl(HashAlgorithm):
    name = "blake3"

    def new(self) -> HashState:
        return blake3.blake3()


class HasherImpl(Hasher):
    """
    A hasher that supports any pair of algorithms via the HashAlgorithm interface.
    Holds no per-file state: records are immutable and shared across workers.
    """

    def __init__(
            self,
            quick_algorithm: HashAlgorithm = None,
            full_algorithm: HashAlgorithm = None,
            quick_bytes: int = DEFAULT_QUICK_BYTES,
            buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        if quick_bytes < 0:
            raise ValueError("quick_bytes cannot be negative")
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.quick_algorithm = quick_algorithm or XXHashAlgorithmImpl()
        self.full_algorithm = full_algorithm or Blake3AlgorithmImpl()
        self.quick_bytes = quick_bytes
        self.buffer_size = buffer_size

    def compute_quick_hash(self, file: FileRecord) -> bytes:
        """
        Digest of the first min(size, quick_bytes) bytes.
        Raises OSError if the file cannot be read or is shorter than expected.
        """
        limit = min(file.size, self.quick_bytes)
        state = self.quick_algorithm.new()
        got = self._feed(file.path, state, limit)
        if got != limit:
            raise FileChangedError(f"expected {limit} bytes, read {got}")
        return state.digest()

    def compute_full_hash(self, file: FileRecord) -> bytes:
        """
        Streams the whole file through the full algorithm.
        Raises OSError if reading fails or the length differs from the recorded size.
        """
        state = self.full_algorithm.new()
        got = self._feed(file.path, state, None)
        if got != file.size:
            raise FileChangedError(f"size changed since discovery: expected {file.size} bytes, read {got}")
        return state.digest()

    def _feed(self, path: str, state: HashState, limit) -> int:
        """Reads up to `limit` bytes (None = until EOF) into `state`; returns bytes read."""
        total = 0
        with open(path, 'rb') as f:
            while limit is None or total < limit:
                want = self.buffer_size if limit is None else min(self.buffer_size, limit - total)
                chunk = f.read(want)
                if not chunk:
                    break
                state.update(chunk)
                total += len(chunk)
        return total
