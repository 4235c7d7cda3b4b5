"""
Reference group allocator replay.

Rebuilds per-size-class allocator state from the metadata store: group
bitmaps say which slots were handed out, chunk records say which of those
slots hold data. Slots that are allocated but carry no chunk record are
counted as reserved.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from typing import Dict, List, Set

from chunkscope_core.utils import get_logger
from chunkscope_db.codec import decode_chunk_meta, decode_group_bitmap
from chunkscope_db.interfaces import AllocatorLoader, ChunkAllocator, MetaIterator
from chunkscope_db.keys import MetaKey
from chunkscope_db.models import SLOTS_PER_GROUP, Position, size_shift

_FULL_GROUP = (1 << SLOTS_PER_GROUP) - 1


def _popcount(value: int) -> int:
    return bin(value).count("1")


class AllocatorCounter:
    """Allocated/reserved chunk totals for one size class."""

    def __init__(self, chunk_size: int) -> None:
        self.chunk_size = chunk_size
        self._allocated = 0
        self._reserved = 0

    def allocated_chunks(self) -> int:
        return self._allocated

    def reserved_chunks(self) -> int:
        return self._reserved

    def add_allocated(self, count: int) -> None:
        self._allocated += count

    def add_reserved(self, count: int) -> None:
        self._reserved += count


class GroupAllocator(ChunkAllocator):
    """Replayed allocator of one size class."""

    def __init__(self, chunk_size: int, groups: Dict[int, int]) -> None:
        self.chunk_size = chunk_size
        self._groups = dict(groups)
        self._observed: Set[int] = set()

    @property
    def full_groups(self) -> List[int]:
        return sorted(g for g, bits in self._groups.items() if bits == _FULL_GROUP)

    @property
    def active_groups(self) -> List[int]:
        return sorted(g for g, bits in self._groups.items() if bits != _FULL_GROUP)

    def is_allocated(self, pos: Position) -> bool:
        return bool(self._groups.get(pos.group, 0) >> pos.index & 1)

    def reference(self, pos: Position, referenced: bool) -> None:
        if referenced:
            self._observed.add(pos.slot)
        else:
            self._observed.discard(pos.slot)

    @property
    def observed_chunks(self) -> int:
        return len(self._observed)


class GroupAllocatorLoader(AllocatorLoader):
    """Replays group bitmaps and chunk records into a GroupAllocator."""

    def __init__(self) -> None:
        self.logger = get_logger(__name__)

    def load(self, iterator: MetaIterator, counter: AllocatorCounter, chunk_size: int) -> GroupAllocator:
        shift = size_shift(chunk_size)
        groups: Dict[int, int] = {}
        referenced: Set[Position] = set()

        iterator.seek(b"")
        while iterator.valid():
            key = iterator.key()
            if MetaKey.is_group_key(key):
                key_shift, group = MetaKey.parse_group_key(key)
                if key_shift == shift:
                    groups[group] = decode_group_bitmap(iterator.value())
            elif MetaKey.is_chunk_meta_key(key) and key != MetaKey.chunk_meta_key_prefix():
                meta = decode_chunk_meta(iterator.value())
                if meta.chunk_size == chunk_size:
                    referenced.add(meta.pos)
            iterator.next()

        allocator = GroupAllocator(chunk_size, groups)
        allocated = sum(_popcount(bits) for bits in groups.values())
        in_use = sum(1 for pos in referenced if allocator.is_allocated(pos))
        counter.add_allocated(allocated)
        counter.add_reserved(allocated - in_use)

        self.logger.debug(
            "allocator_loaded",
            chunk_size=chunk_size,
            groups=len(groups),
            allocated_chunks=allocated,
            reserved_chunks=allocated - in_use,
        )
        return allocator
