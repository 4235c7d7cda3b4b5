"""
Metadata key layout.

Chunk metadata lives under a one-byte prefix followed by the chunk id;
allocator group bitmaps live under a second prefix followed by the size
shift and a 48-bit big-endian group id.
"""

from typing import Tuple


class MetaKey:
    """Builders and parsers for metadata-store keys."""

    CHUNK_META_KEY_PREFIX = 0x01
    ALLOCATOR_GROUP_KEY_PREFIX = 0x02

    @classmethod
    def chunk_meta_key_prefix(cls) -> bytes:
        """Sentinel key sorting before every chunk metadata key."""
        return bytes([cls.CHUNK_META_KEY_PREFIX])

    @classmethod
    def chunk_meta_key(cls, chunk_id: bytes) -> bytes:
        return bytes([cls.CHUNK_META_KEY_PREFIX]) + bytes(chunk_id)

    @classmethod
    def is_chunk_meta_key(cls, key: bytes) -> bool:
        return key[:1] == bytes([cls.CHUNK_META_KEY_PREFIX])

    @classmethod
    def parse_chunk_meta_key(cls, key: bytes) -> bytes:
        return bytes(key[1:])

    @classmethod
    def group_key(cls, shift: int, group: int) -> bytes:
        return bytes([cls.ALLOCATOR_GROUP_KEY_PREFIX, shift]) + group.to_bytes(6, "big")

    @classmethod
    def is_group_key(cls, key: bytes) -> bool:
        return len(key) == 8 and key[0] == cls.ALLOCATOR_GROUP_KEY_PREFIX

    @classmethod
    def parse_group_key(cls, key: bytes) -> Tuple[int, int]:
        """Return (shift, group) of an allocator group key."""
        return key[1], int.from_bytes(key[2:8], "big")
