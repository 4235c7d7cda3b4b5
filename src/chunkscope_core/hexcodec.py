"""
Hex/content codec.

Renders byte buffers as an xxd-style hex dump and converts chunk
identifiers between their hex string form and raw bytes.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import re

from chunkscope_core.exceptions import InvalidArgumentError

BYTES_PER_LINE = 16
GROUP_SIZE = 8

_HEX_PAIR_RE = re.compile(r"^[0-9a-f]{2}$")


def parse_hex_chunk_id(hex_str: str) -> bytes:
    """
    Parse a hex chunk ID string into raw bytes.

    Leading/trailing whitespace is ignored and case does not matter.

    Raises:
        InvalidArgumentError: On odd length or a non-hex character.
    """
    normalized = hex_str.strip().lower()

    if len(normalized) % 2 != 0:
        raise InvalidArgumentError(
            "Chunk ID hex string must have even length",
            error_code="ARG_002",
            details={"chunk_id": hex_str},
        )

    out = bytearray()
    for i in range(0, len(normalized), 2):
        pair = normalized[i : i + 2]
        if not _HEX_PAIR_RE.match(pair):
            raise InvalidArgumentError(
                f"Invalid hex character in chunk ID: {pair}",
                error_code="ARG_002",
                details={"chunk_id": hex_str, "offset": i},
            )
        out.append(int(pair, 16))

    return bytes(out)


def chunk_id_to_hex(chunk_id: bytes) -> str:
    """Lowercase hex form of a chunk identifier."""
    return chunk_id.hex()


def shorten_chunk_id(chunk_id_hex: str, max_chars: int = 16) -> str:
    """Truncate a hex id to ``max_chars`` followed by '...' when longer."""
    if len(chunk_id_hex) > max_chars:
        return f"{chunk_id_hex[:max_chars]}..."
    return chunk_id_hex


def _gutter_char(byte: int) -> str:
    # Graphic ASCII and space print as themselves.
    if 0x20 <= byte <= 0x7E:
        return chr(byte)
    return "."


def format_hex_dump(data: bytes) -> str:
    """
    Format data as a hex dump.

    Each line holds 16 bytes: an 8-digit hex offset, the bytes in two groups
    of 8, and an ASCII gutter between pipes. Short final lines are padded so
    the gutter stays aligned.

    Example output for ``b"Hello, chunk!"`` followed by bytes 0x00 and 0xff::

        00000000  48 65 6c 6c 6f 2c 20 63  68 75 6e 6b 21 00 ff     |Hello, chunk!..|
    """
    lines = []

    for offset in range(0, len(data), BYTES_PER_LINE):
        row = data[offset : offset + BYTES_PER_LINE]
        parts = [f"{offset:08x}  "]

        for j, byte in enumerate(row):
            if j == GROUP_SIZE:
                parts.append(" ")
            parts.append(f"{byte:02x} ")

        if len(row) < BYTES_PER_LINE:
            padding = (BYTES_PER_LINE - len(row)) * 3
            if len(row) <= GROUP_SIZE:
                padding += 1
            parts.append(" " * padding)

        parts.append(" |")
        parts.append("".join(_gutter_char(b) for b in row))
        parts.append("|\n")
        lines.append("".join(parts))

    return "".join(lines)
