"""
chunkscope_db - Read-only storage layer for Chunkscope.

Provides the storage engine capability interfaces, the metadata record
codec, the reference allocator replay and the snapshot/in-memory backends.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from chunkscope_db.allocator import AllocatorCounter, GroupAllocator, GroupAllocatorLoader
from chunkscope_db.backends import open_storage
from chunkscope_db.codec import decode_chunk_meta, encode_chunk_meta
from chunkscope_db.interfaces import (
    AllocatorLoader,
    ChunkAllocator,
    ChunkEngine,
    ChunkHandle,
    MetaIterator,
    MetaStore,
    Storage,
)
from chunkscope_db.keys import MetaKey
from chunkscope_db.memory import MemoryMetaStore, MemoryStorageBuilder
from chunkscope_db.models import (
    CHUNK_SIZE_SMALL,
    CHUNK_SIZE_ULTRA,
    ChunkMeta,
    Position,
    size_classes,
)
from chunkscope_db.scan import iter_chunk_records, scan_chunk_records
from chunkscope_db.snapshot import open_snapshot

__all__ = [
    "AllocatorCounter",
    "AllocatorLoader",
    "ChunkAllocator",
    "ChunkEngine",
    "ChunkHandle",
    "ChunkMeta",
    "CHUNK_SIZE_SMALL",
    "CHUNK_SIZE_ULTRA",
    "GroupAllocator",
    "GroupAllocatorLoader",
    "MemoryMetaStore",
    "MemoryStorageBuilder",
    "MetaIterator",
    "MetaKey",
    "MetaStore",
    "Position",
    "Storage",
    "decode_chunk_meta",
    "encode_chunk_meta",
    "iter_chunk_records",
    "open_snapshot",
    "open_storage",
    "scan_chunk_records",
    "size_classes",
]
