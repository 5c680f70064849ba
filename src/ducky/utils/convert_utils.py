"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
Binary (1024-based) size parsing and formatting for --min-size, --quick-bytes
and the reports.
"""
import re

_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]

# '64KB', '64K', '64KiB', '1.5 GB', '2048'
_SIZE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)\s*(?:([KMGTP])(?:I?B)?|B)?$", re.IGNORECASE)


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """Whole bytes below 1KB, two decimals above (1.50KB, 3.20MB)."""
        if size_bytes < 1024:
            return f"{max(0, int(size_bytes))}B"
        value = float(size_bytes)
        for unit in _UNITS[1:]:
            value /= 1024
            if value < 1024 or unit == _UNITS[-1]:
                return f"{value:.2f}{unit}"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Parse a size with an optional binary suffix. KB, K and KiB all mean 1024.
        Raises ValueError for negative sizes or anything unparseable.
        """
        match = _SIZE_RE.match(size_str.strip())
        if not match:
            raise ValueError(
                f"Invalid size format: '{size_str}'. "
                f"Supported formats: 1.5GB, 2048KB, 64KiB, 1000, 1K, 1M"
            )
        number, prefix = match.groups()
        value = float(number)
        if value < 0:
            raise ValueError(f"Negative size not allowed: '{size_str}'")
        multiplier = 1024 ** ("BKMGTP".index(prefix.upper()) if prefix else 0)
        return int(value * multiplier)

    @staticmethod
    def is_valid_size_format(size_str: str) -> bool:
        try:
            ConvertUtils.human_to_bytes(size_str)
            return True
        except ValueError:
            return False
