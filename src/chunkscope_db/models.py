"""
Data models for chunkscope_db module.

Defines the size-class ladder, slot positions and the decoded chunk
metadata record.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chunkscope_core.exceptions import SerializationError

CHUNK_SIZE_SMALL = 64 * 1024
CHUNK_SIZE_ULTRA = 64 * 1024 * 1024

# Slots per allocation group; one bitmap bit per slot.
SLOTS_PER_GROUP = 256

_SHIFT_BITS = 56
_INDEX_MASK = 0xFF
_GROUP_MASK = (1 << 48) - 1


def size_classes() -> List[int]:
    """Every supported chunk size, smallest to largest inclusive."""
    sizes = []
    chunk_size = CHUNK_SIZE_SMALL
    while True:
        sizes.append(chunk_size)
        if chunk_size >= CHUNK_SIZE_ULTRA:
            break
        chunk_size *= 2
    return sizes


def is_size_class(chunk_size: int) -> bool:
    """True if chunk_size is a rung of the ladder."""
    return chunk_size in size_classes()


def size_shift(chunk_size: int) -> int:
    """log2 of a ladder chunk size."""
    return chunk_size.bit_length() - 1


@dataclass(frozen=True, order=True)
class Position:
    """
    Physical slot address of a chunk.

    Packed as a 64-bit integer: size-class shift in bits 56-63, allocation
    group in bits 8-55, slot index within the group in bits 0-7.
    """

    shift: int
    group: int
    index: int

    @property
    def chunk_size(self) -> int:
        return 1 << self.shift

    @property
    def slot(self) -> int:
        """Slot number within the size class."""
        return self.group * SLOTS_PER_GROUP + self.index

    def to_u64(self) -> int:
        return (self.shift << _SHIFT_BITS) | (self.group << 8) | self.index

    @classmethod
    def from_u64(cls, value: int) -> "Position":
        """
        Decode a packed position.

        Raises:
            SerializationError: If the encoded size is not on the ladder.
        """
        shift = value >> _SHIFT_BITS
        position = cls(shift=shift, group=(value >> 8) & _GROUP_MASK, index=value & _INDEX_MASK)
        if not is_size_class(position.chunk_size):
            raise SerializationError(
                f"Position 0x{value:016x} encodes unsupported chunk size 2^{shift}",
                error_code="SER_002",
                details={"position": value},
            )
        return position

    @classmethod
    def for_slot(cls, chunk_size: int, slot: int) -> "Position":
        return cls(
            shift=size_shift(chunk_size),
            group=slot // SLOTS_PER_GROUP,
            index=slot % SLOTS_PER_GROUP,
        )


class ChunkMeta(BaseModel):
    """Decoded chunk metadata record."""

    model_config = ConfigDict(frozen=True)

    pos: Position
    length: int = Field(..., ge=0)
    chain_ver: int = Field(default=0, ge=0)
    chunk_ver: int = Field(default=0, ge=0)
    checksum: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    uncommitted: bool = False

    @property
    def chunk_size(self) -> int:
        return self.pos.chunk_size

    @model_validator(mode="after")
    def check_length_fits(self) -> "ChunkMeta":
        """Recorded length may never exceed the slot capacity."""
        if self.length > self.pos.chunk_size:
            raise ValueError(
                f"length {self.length} exceeds chunk capacity {self.pos.chunk_size}"
            )
        return self
