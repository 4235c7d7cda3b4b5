"""
Unit test fixtures.

Isolates unit tests from CHUNKSCOPE_* environment variables and provides
in-memory and on-disk storage builders.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import os
import struct
from pathlib import Path

import pytest

from chunkscope_db.codec import decode_chunk_meta
from chunkscope_db.keys import MetaKey
from chunkscope_db.memory import MemoryStorageBuilder

CONFIG_ENV_VARS = [
    "CHUNKSCOPE_LOG_LEVEL",
    "CHUNKSCOPE_LOG_FORMAT",
    "CHUNKSCOPE_BACKEND",
    "CHUNKSCOPE_DEFAULT_PAGE_SIZE",
    "CHUNKSCOPE_PREVIEW_BYTES",
    "CHUNKSCOPE_SHORT_ID_CHARS",
]


@pytest.fixture(autouse=True)
def clean_env_for_unit_tests(monkeypatch, tmp_path):
    """
    Remove config environment variables and run from a temp directory so a
    project .env file is not picked up.
    """
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    original_dir = os.getcwd()
    os.chdir(tmp_path)
    yield
    os.chdir(original_dir)


@pytest.fixture
def builder():
    """Fresh MemoryStorageBuilder."""
    return MemoryStorageBuilder()


def write_snapshot(root: Path, builder: MemoryStorageBuilder) -> Path:
    """Write the builder's records and payloads as a snapshot directory."""
    root.mkdir(parents=True, exist_ok=True)
    records = builder.all_records()

    with open(root / "meta.kv", "wb") as f:
        for key in sorted(records):
            value = records[key]
            f.write(struct.pack("<I", len(key)) + key)
            f.write(struct.pack("<I", len(value)) + value)

    chunks_dir = root / "chunks"
    chunks_dir.mkdir(exist_ok=True)
    for chunk_id, data in builder.payloads.items():
        meta = decode_chunk_meta(records[MetaKey.chunk_meta_key(chunk_id)])
        path = chunks_dir / f"{meta.chunk_size}.dat"
        mode = "r+b" if path.exists() else "wb"
        with open(path, mode) as f:
            f.seek(meta.pos.slot * meta.chunk_size)
            f.write(data)

    return root


@pytest.fixture
def snapshot_writer(tmp_path):
    """Callable writing a builder to <tmp_path>/store and returning the path."""

    def _write(builder: MemoryStorageBuilder, name: str = "store") -> Path:
        return write_snapshot(tmp_path / name, builder)

    return _write
