"""
Size-bucket lexicon.

Converts between human size notation ("64KB", "8MB", "1.5G", raw byte
counts) and byte counts, and renders byte counts in binary units.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import re

from chunkscope_core.exceptions import InvalidArgumentError

UNITS = ["B", "KB", "MB", "GB", "TB"]
THRESHOLD = 1024.0

# Suffix -> multiplier. Single-letter forms are accepted as aliases.
_MULTIPLIERS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
    "T": 1024**4,
    "TB": 1024**4,
}

_SIZE_RE = re.compile(r"^(?P<number>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>[KMGT]?B?)$")


def parse_size(size_str: str) -> int:
    """
    Parse a size string like "64KB", "8MB", "1GB" or "65536" into bytes.

    Units are binary (1K = 1024) and case-insensitive. Fractional values are
    allowed with a K/M/G/T unit and truncated to whole bytes.

    Raises:
        InvalidArgumentError: If the string is empty, negative or malformed.
    """
    if size_str is None:
        raise InvalidArgumentError("Size cannot be empty", error_code="ARG_001")

    normalized = size_str.strip().upper()
    if not normalized:
        raise InvalidArgumentError("Size cannot be empty", error_code="ARG_001")

    if normalized.startswith("-"):
        raise InvalidArgumentError(
            "Size cannot be negative",
            error_code="ARG_001",
            details={"size": size_str},
        )

    match = _SIZE_RE.match(normalized)
    if match is None:
        raise InvalidArgumentError(
            f"Invalid size format: {size_str}. "
            "Use formats like '64KB', '8MB', '1GB' or raw bytes",
            error_code="ARG_001",
            details={"size": size_str},
        )

    number, unit = match.group("number"), match.group("unit")
    multiplier = _MULTIPLIERS[unit]

    if "." in number:
        if multiplier == 1:
            raise InvalidArgumentError(
                f"Invalid number in size: {size_str}. Byte counts must be whole numbers",
                error_code="ARG_001",
                details={"size": size_str},
            )
        return int(float(number) * multiplier)

    return int(number) * multiplier


def format_size(num_bytes: int) -> str:
    """
    Format a byte count as a friendly size string.

    Examples:
        >>> format_size(1023)
        '1023 B'
        >>> format_size(1536)
        '1.50 KB'
    """
    size = float(num_bytes)
    unit_index = 0

    while size >= THRESHOLD and unit_index < len(UNITS) - 1:
        size /= THRESHOLD
        unit_index += 1

    if unit_index == 0:
        return f"{num_bytes} {UNITS[0]}"
    return f"{size:.2f} {UNITS[unit_index]}"
