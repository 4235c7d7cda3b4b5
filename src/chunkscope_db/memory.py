"""
In-memory storage.

Ordered metadata records plus chunk payloads held in dicts. Used for tests
and as the record index behind the on-disk snapshot reader.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import bisect
import zlib
from typing import Dict, Mapping, Optional

from chunkscope_core.exceptions import InvalidArgumentError
from chunkscope_db.allocator import GroupAllocatorLoader
from chunkscope_db.codec import decode_chunk_meta, encode_chunk_meta, encode_group_bitmap
from chunkscope_db.interfaces import ChunkEngine, ChunkHandle, MetaIterator, MetaStore, Storage
from chunkscope_db.keys import MetaKey
from chunkscope_db.models import ChunkMeta, Position, size_classes


class MemoryIterator(MetaIterator):
    """Cursor over a sorted key list."""

    def __init__(self, keys, records: Mapping[bytes, bytes]) -> None:
        self._keys = keys
        self._records = records
        self._index = len(keys)

    def seek(self, key: bytes) -> None:
        self._index = bisect.bisect_left(self._keys, key)

    def valid(self) -> bool:
        return self._index < len(self._keys)

    def key(self) -> Optional[bytes]:
        return self._keys[self._index] if self.valid() else None

    def value(self) -> Optional[bytes]:
        return self._records[self._keys[self._index]] if self.valid() else None

    def next(self) -> None:
        if self.valid():
            self._index += 1


class MemoryMetaStore(MetaStore):
    """Read-only view over a snapshot of key/value records."""

    def __init__(self, records: Mapping[bytes, bytes]) -> None:
        self._records = {bytes(k): bytes(v) for k, v in records.items()}
        self._keys = sorted(self._records)

    def __len__(self) -> int:
        return len(self._keys)

    def iterator(self) -> MemoryIterator:
        return MemoryIterator(self._keys, self._records)

    def get_chunk_meta(self, chunk_id: bytes) -> Optional[ChunkMeta]:
        value = self._records.get(MetaKey.chunk_meta_key(chunk_id))
        if value is None:
            return None
        return decode_chunk_meta(value)


class MemoryChunkHandle(ChunkHandle):
    def __init__(self, data: bytes, capacity: int) -> None:
        self._data = data
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def pread(self, length: int, offset: int = 0) -> bytes:
        return self._data[offset : offset + length]


class MemoryChunkEngine(ChunkEngine):
    """Chunk payloads keyed by chunk id; capacity comes from the metadata."""

    def __init__(self, meta_store: MetaStore, payloads: Mapping[bytes, bytes]) -> None:
        self._meta_store = meta_store
        self._payloads = dict(payloads)

    def get(self, chunk_id: bytes) -> Optional[MemoryChunkHandle]:
        data = self._payloads.get(bytes(chunk_id))
        if data is None:
            return None
        meta = self._meta_store.get_chunk_meta(chunk_id)
        capacity = meta.chunk_size if meta is not None else len(data)
        return MemoryChunkHandle(data, capacity)


class MemoryStorageBuilder:
    """
    Assembles a consistent in-memory storage.

    Every added chunk takes the next free slot of its size class and sets the
    matching bit in that class's group bitmap, so replayed allocator counters
    agree with the chunk records unless a test corrupts them on purpose.

    Example:
        builder = MemoryStorageBuilder()
        builder.add_chunk(b"\\x01\\x02", b"payload")
        builder.reserve_slots(65536, 2)
        storage = builder.build()
    """

    def __init__(self) -> None:
        self.records: Dict[bytes, bytes] = {}
        self.payloads: Dict[bytes, bytes] = {}
        self._bitmaps: Dict[tuple, int] = {}
        self._next_slot: Dict[int, int] = {}

    @staticmethod
    def size_class_for(length: int) -> int:
        for chunk_size in size_classes():
            if length <= chunk_size:
                return chunk_size
        raise InvalidArgumentError(f"No size class holds {length} bytes", error_code="ARG_001")

    def _take_slot(self, chunk_size: int) -> Position:
        slot = self._next_slot.get(chunk_size, 0)
        self._next_slot[chunk_size] = slot + 1
        pos = Position.for_slot(chunk_size, slot)
        self.mark_allocated(pos)
        return pos

    def mark_allocated(self, pos: Position) -> None:
        key = (pos.shift, pos.group)
        self._bitmaps[key] = self._bitmaps.get(key, 0) | (1 << pos.index)

    def add_chunk(
        self,
        chunk_id: bytes,
        data: bytes = b"",
        chunk_size: Optional[int] = None,
        length: Optional[int] = None,
        chain_ver: int = 1,
        chunk_ver: int = 1,
        checksum: Optional[int] = None,
        uncommitted: bool = False,
        store_data: bool = True,
        allocate: bool = True,
    ) -> ChunkMeta:
        """Add a chunk record (and payload unless ``store_data`` is False)."""
        if chunk_size is None:
            chunk_size = self.size_class_for(len(data))
        if allocate:
            pos = self._take_slot(chunk_size)
        else:
            slot = self._next_slot.get(chunk_size, 0)
            self._next_slot[chunk_size] = slot + 1
            pos = Position.for_slot(chunk_size, slot)

        meta = ChunkMeta(
            pos=pos,
            length=len(data) if length is None else length,
            chain_ver=chain_ver,
            chunk_ver=chunk_ver,
            checksum=zlib.crc32(data) if checksum is None else checksum,
            uncommitted=uncommitted,
        )
        self.records[MetaKey.chunk_meta_key(chunk_id)] = encode_chunk_meta(meta)
        if store_data:
            self.payloads[bytes(chunk_id)] = bytes(data)
        return meta

    def reserve_slots(self, chunk_size: int, count: int) -> None:
        """Allocate ``count`` slots that no chunk record references."""
        for _ in range(count):
            self._take_slot(chunk_size)

    def add_raw_record(self, key: bytes, value: bytes) -> None:
        self.records[bytes(key)] = bytes(value)

    def all_records(self) -> Dict[bytes, bytes]:
        records = dict(self.records)
        for (shift, group), bits in self._bitmaps.items():
            records[MetaKey.group_key(shift, group)] = encode_group_bitmap(bits)
        return records

    def build(self) -> Storage:
        meta_store = MemoryMetaStore(self.all_records())
        return Storage(
            meta_store=meta_store,
            engine=MemoryChunkEngine(meta_store, self.payloads),
            allocator_loader=GroupAllocatorLoader(),
        )
