"""
Binary codec for chunk metadata records.

Records are packed little-endian as ``<QIIIIB``: position, chain version,
chunk version, length, checksum, uncommitted flag.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import struct

from pydantic import ValidationError

from chunkscope_core.exceptions import SerializationError
from chunkscope_db.models import ChunkMeta, Position

_RECORD = struct.Struct("<QIIIIB")
RECORD_SIZE = _RECORD.size

# Bitmap size of one allocation group (256 slots).
GROUP_BITMAP_SIZE = 32


def encode_chunk_meta(meta: ChunkMeta) -> bytes:
    return _RECORD.pack(
        meta.pos.to_u64(),
        meta.chain_ver,
        meta.chunk_ver,
        meta.length,
        meta.checksum,
        1 if meta.uncommitted else 0,
    )


def decode_chunk_meta(value: bytes) -> ChunkMeta:
    """
    Decode a stored metadata value.

    Raises:
        SerializationError: If the bytes are truncated, carry trailing data,
            an invalid flag, an unsupported position, or a length larger
            than the slot.
    """
    if len(value) != RECORD_SIZE:
        raise SerializationError(
            f"Chunk metadata record must be {RECORD_SIZE} bytes, got {len(value)}",
            error_code="SER_001",
            details={"record_size": len(value)},
        )

    pos, chain_ver, chunk_ver, length, checksum, flag = _RECORD.unpack(value)
    if flag not in (0, 1):
        raise SerializationError(
            f"Invalid uncommitted flag: {flag}",
            error_code="SER_001",
            details={"flag": flag},
        )

    position = Position.from_u64(pos)
    try:
        return ChunkMeta(
            pos=position,
            length=length,
            chain_ver=chain_ver,
            chunk_ver=chunk_ver,
            checksum=checksum,
            uncommitted=bool(flag),
        )
    except ValidationError as e:
        raise SerializationError(
            f"Invalid chunk metadata record: {e.errors()[0]['msg']}",
            error_code="SER_001",
            original_exception=e,
        ) from e


def decode_group_bitmap(value: bytes) -> int:
    """Decode an allocation group bitmap into an int (bit i = slot i)."""
    if len(value) != GROUP_BITMAP_SIZE:
        raise SerializationError(
            f"Allocation group bitmap must be {GROUP_BITMAP_SIZE} bytes, got {len(value)}",
            error_code="SER_001",
            details={"record_size": len(value)},
        )
    return int.from_bytes(value, "little")


def encode_group_bitmap(bitmap: int) -> bytes:
    return bitmap.to_bytes(GROUP_BITMAP_SIZE, "little")
