"""
Read-only reader for on-disk storage snapshots.

Layout of a snapshot directory::

    <dir>/meta.kv                 u32 key_len | key | u32 value_len | value, repeated
    <dir>/chunks/<chunk_size>.dat slot files, slot at (group * 256 + index) * chunk_size

Integers are little-endian. Every file is opened with mode ``rb``; nothing
is ever written back.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import struct
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Union

from chunkscope_core.exceptions import SerializationError, StorageIOError
from chunkscope_core.utils import get_logger
from chunkscope_db.allocator import GroupAllocatorLoader
from chunkscope_db.interfaces import ChunkEngine, ChunkHandle, MetaStore, Storage
from chunkscope_db.memory import MemoryMetaStore

META_FILE = "meta.kv"
CHUNKS_DIR = "chunks"

_LEN = struct.Struct("<I")


def read_meta_records(path: Path) -> Dict[bytes, bytes]:
    """
    Parse a meta.kv file into a key -> value dict.

    Raises:
        StorageIOError: If the file cannot be read.
        SerializationError: If the file is truncated.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise StorageIOError(
            f"Failed to open metadata file {path}: {e}",
            error_code="IO_001",
            details={"path": str(path)},
            original_exception=e,
        ) from e

    records: Dict[bytes, bytes] = {}
    offset = 0
    while offset < len(raw):
        parts = []
        for _ in range(2):
            if offset + _LEN.size > len(raw):
                raise SerializationError(
                    f"Truncated length field at offset {offset} in {path}",
                    error_code="SER_001",
                    details={"offset": offset},
                )
            (size,) = _LEN.unpack_from(raw, offset)
            offset += _LEN.size
            if offset + size > len(raw):
                raise SerializationError(
                    f"Truncated record at offset {offset} in {path}",
                    error_code="SER_001",
                    details={"offset": offset, "expected": size},
                )
            parts.append(raw[offset : offset + size])
            offset += size
        records[parts[0]] = parts[1]
    return records


class SnapshotMetaStore(MemoryMetaStore):
    """Metadata store loaded from ``meta.kv``."""

    @classmethod
    def open(cls, path: Path) -> "SnapshotMetaStore":
        return cls(read_meta_records(path))


class FileChunkHandle(ChunkHandle):
    def __init__(self, file: BinaryIO, slot_offset: int, capacity: int, path: Path) -> None:
        self._file = file
        self._slot_offset = slot_offset
        self._capacity = capacity
        self._path = path

    @property
    def capacity(self) -> int:
        return self._capacity

    def pread(self, length: int, offset: int = 0) -> bytes:
        try:
            self._file.seek(self._slot_offset + offset)
            return self._file.read(length)
        except OSError as e:
            raise StorageIOError(
                f"Failed to read {self._path}: {e}",
                error_code="IO_002",
                details={"path": str(self._path), "offset": self._slot_offset + offset},
                original_exception=e,
            ) from e


class SnapshotChunkEngine(ChunkEngine):
    """Slot files per size class, opened lazily and read-only."""

    def __init__(self, chunks_dir: Path, meta_store: MetaStore) -> None:
        self.chunks_dir = chunks_dir
        self._meta_store = meta_store
        self._files: Dict[int, BinaryIO] = {}
        self.logger = get_logger(__name__)

    def _data_file(self, chunk_size: int) -> Optional[BinaryIO]:
        if chunk_size in self._files:
            return self._files[chunk_size]
        path = self.chunks_dir / f"{chunk_size}.dat"
        if not path.is_file():
            self.logger.debug("chunk_data_file_missing", path=str(path))
            return None
        try:
            handle = open(path, "rb")
        except OSError as e:
            raise StorageIOError(
                f"Failed to open chunk data file {path}: {e}",
                error_code="IO_001",
                details={"path": str(path)},
                original_exception=e,
            ) from e
        self._files[chunk_size] = handle
        return handle

    def get(self, chunk_id: bytes) -> Optional[FileChunkHandle]:
        meta = self._meta_store.get_chunk_meta(chunk_id)
        if meta is None:
            return None
        data_file = self._data_file(meta.chunk_size)
        if data_file is None:
            return None
        return FileChunkHandle(
            data_file,
            meta.pos.slot * meta.chunk_size,
            meta.chunk_size,
            self.chunks_dir / f"{meta.chunk_size}.dat",
        )

    def close(self) -> None:
        for handle in self._files.values():
            handle.close()
        self._files.clear()


def open_snapshot(path: Union[str, Path]) -> Storage:
    """
    Open a snapshot directory read-only.

    Raises:
        StorageIOError: If the directory or its meta.kv file is missing.
    """
    root = Path(path)
    if not root.is_dir():
        raise StorageIOError(
            f"Storage directory not found: {root}",
            error_code="IO_001",
            details={"path": str(root)},
        )

    meta_store = SnapshotMetaStore.open(root / META_FILE)
    return Storage(
        meta_store=meta_store,
        engine=SnapshotChunkEngine(root / CHUNKS_DIR, meta_store),
        allocator_loader=GroupAllocatorLoader(),
    )
