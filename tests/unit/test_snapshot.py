"""
Unit tests for the snapshot backend and backend selection.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import struct

import pytest

from chunkscope_core.exceptions import InvalidArgumentError, SerializationError, StorageIOError
from chunkscope_db.backends import load_factory, open_storage
from chunkscope_db.interfaces import Storage
from chunkscope_db.models import CHUNK_SIZE_SMALL
from chunkscope_db.snapshot import open_snapshot, read_meta_records

MB = 1024 * 1024


def memory_factory(path):
    """Backend factory used by the import-path tests."""
    from chunkscope_db.memory import MemoryStorageBuilder

    builder = MemoryStorageBuilder()
    builder.add_chunk(b"\x42", str(path).encode())
    return builder.build()


def not_a_storage(path):
    return {"path": path}


class TestReadMetaRecords:
    def test_parses_records(self, tmp_path):
        path = tmp_path / "meta.kv"
        path.write_bytes(
            struct.pack("<I", 2) + b"k1" + struct.pack("<I", 3) + b"abc"
            + struct.pack("<I", 1) + b"z" + struct.pack("<I", 0)
        )

        assert read_meta_records(path) == {b"k1": b"abc", b"z": b""}

    def test_truncated_file_rejected(self, tmp_path):
        path = tmp_path / "meta.kv"
        path.write_bytes(struct.pack("<I", 5) + b"ab")

        with pytest.raises(SerializationError):
            read_meta_records(path)

    def test_missing_file_raises_io_error(self, tmp_path):
        with pytest.raises(StorageIOError) as exc_info:
            read_meta_records(tmp_path / "meta.kv")

        assert exc_info.value.error_code == "IO_001"


class TestOpenSnapshot:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(StorageIOError):
            open_snapshot(tmp_path / "nope")

    def test_reads_metadata_and_chunks(self, builder, snapshot_writer):
        builder.add_chunk(b"\x01", b"first", chunk_size=CHUNK_SIZE_SMALL)
        builder.add_chunk(b"\x02", b"second", chunk_size=CHUNK_SIZE_SMALL)
        builder.add_chunk(b"\x03", b"big", chunk_size=MB)
        root = snapshot_writer(builder)

        with open_snapshot(root) as storage:
            meta = storage.meta_store.get_chunk_meta(b"\x02")
            handle = storage.engine.get(b"\x02")

            assert meta.length == 6
            assert handle.capacity == CHUNK_SIZE_SMALL
            assert handle.pread(meta.length, 0) == b"second"
            assert storage.engine.get(b"\x03").pread(3) == b"big"
            assert storage.engine.get(b"\x99") is None

    def test_missing_data_file_means_no_data(self, builder, snapshot_writer):
        builder.add_chunk(b"\x01", b"kept", chunk_size=CHUNK_SIZE_SMALL)
        builder.add_chunk(b"\x02", b"lost", chunk_size=MB, store_data=False)
        root = snapshot_writer(builder)

        with open_snapshot(root) as storage:
            assert storage.engine.get(b"\x02") is None
            assert storage.meta_store.get_chunk_meta(b"\x02") is not None

    def test_files_untouched(self, builder, snapshot_writer):
        builder.add_chunk(b"\x01", b"abc")
        root = snapshot_writer(builder)
        before = {p: p.read_bytes() for p in root.rglob("*") if p.is_file()}

        with open_snapshot(root) as storage:
            storage.engine.get(b"\x01").pread(3)

        assert {p: p.read_bytes() for p in root.rglob("*") if p.is_file()} == before


class TestOpenStorage:
    def test_snapshot_backend(self, builder, snapshot_writer):
        builder.add_chunk(b"\x01", b"abc")
        root = snapshot_writer(builder)

        with open_storage(root) as storage:
            assert isinstance(storage, Storage)
            assert storage.meta_store.get_chunk_meta(b"\x01").length == 3

    def test_import_path_backend(self, tmp_path):
        storage = open_storage(tmp_path, backend=f"{__name__}:memory_factory")

        handle = storage.engine.get(b"\x42")
        assert handle.pread(len(str(tmp_path))) == str(tmp_path).encode()

    def test_factory_must_return_storage(self, tmp_path):
        with pytest.raises(InvalidArgumentError) as exc_info:
            open_storage(tmp_path, backend=f"{__name__}:not_a_storage")

        assert exc_info.value.error_code == "ARG_004"

    @pytest.mark.parametrize(
        "spec",
        ["no_colon", ":factory", "module:", "chunkscope_missing_module:factory", "os:not_there"],
    )
    def test_bad_factory_specs(self, spec):
        with pytest.raises(InvalidArgumentError):
            load_factory(spec)
