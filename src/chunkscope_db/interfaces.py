"""
Read-only capability interfaces of the chunk storage engine.

The inspection components only ever talk to these abstractions, so a real
engine binding, the on-disk snapshot reader and the in-memory test storage
are interchangeable.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from chunkscope_db.models import ChunkMeta, Position

if TYPE_CHECKING:
    from chunkscope_db.allocator import AllocatorCounter


class MetaIterator(ABC):
    """Forward cursor over the ordered metadata store."""

    @abstractmethod
    def seek(self, key: bytes) -> None:
        """Position on the first key >= ``key``."""

    @abstractmethod
    def valid(self) -> bool:
        """True while the cursor points at a record."""

    @abstractmethod
    def key(self) -> Optional[bytes]:
        """Current key, or None when invalid."""

    @abstractmethod
    def value(self) -> Optional[bytes]:
        """Current value, or None when invalid."""

    @abstractmethod
    def next(self) -> None:
        """Advance to the following record."""

    def close(self) -> None:
        """Release the cursor."""

    def __enter__(self) -> "MetaIterator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MetaStore(ABC):
    """Ordered key-value metadata store, opened read-only."""

    @abstractmethod
    def iterator(self) -> MetaIterator:
        """Fresh cursor, unpositioned until ``seek`` is called."""

    @abstractmethod
    def get_chunk_meta(self, chunk_id: bytes) -> Optional[ChunkMeta]:
        """Decoded metadata for ``chunk_id`` or None if absent."""

    def close(self) -> None:
        """Release the store."""


class ChunkHandle(ABC):
    """Readable view of one chunk's slot."""

    @property
    @abstractmethod
    def capacity(self) -> int:
        """Slot capacity in bytes."""

    @abstractmethod
    def pread(self, length: int, offset: int = 0) -> bytes:
        """Read up to ``length`` bytes at ``offset`` within the slot."""


class ChunkEngine(ABC):
    """Chunk data access keyed by chunk id."""

    @abstractmethod
    def get(self, chunk_id: bytes) -> Optional[ChunkHandle]:
        """Handle to the chunk's bytes, or None when the engine has no data."""

    def close(self) -> None:
        """Release open files."""


class ChunkAllocator(ABC):
    """Allocator state of a single size class, rebuilt by replay."""

    @property
    @abstractmethod
    def full_groups(self) -> List[int]:
        """Ids of groups with no free slot."""

    @property
    @abstractmethod
    def active_groups(self) -> List[int]:
        """Ids of groups still handing out slots."""

    @abstractmethod
    def reference(self, pos: Position, referenced: bool) -> None:
        """Mark (or unmark) the slot at ``pos`` as observed in use."""

    @property
    @abstractmethod
    def observed_chunks(self) -> int:
        """Distinct slots currently marked by reference()."""


class AllocatorLoader(ABC):
    """Rebuilds a ChunkAllocator by replaying metadata records."""

    @abstractmethod
    def load(
        self, iterator: MetaIterator, counter: "AllocatorCounter", chunk_size: int
    ) -> ChunkAllocator:
        """
        Replay every record reachable from ``iterator`` for ``chunk_size``.

        Allocated and reserved totals are published on ``counter``.
        """


@dataclass
class Storage:
    """The three collaborators of one opened storage directory."""

    meta_store: MetaStore
    engine: ChunkEngine
    allocator_loader: AllocatorLoader

    def close(self) -> None:
        try:
            self.engine.close()
        finally:
            self.meta_store.close()

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
