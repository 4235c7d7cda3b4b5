"""
Unit tests for the Content Inspector.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import io

import pytest

from chunkscope_core.exceptions import InvalidArgumentError, StorageIOError
from chunkscope_core.inspector import (
    STATUS_CHUNK_NOT_FOUND,
    STATUS_DATA_NOT_FOUND,
    STATUS_OK,
    ChunkContentReader,
    decode_text,
)
from chunkscope_db.interfaces import ChunkEngine, ChunkHandle
from chunkscope_db.models import CHUNK_SIZE_SMALL


def reader_for(storage, **kwargs):
    return ChunkContentReader(storage.meta_store, storage.engine, **kwargs)


class FailingHandle(ChunkHandle):
    capacity = CHUNK_SIZE_SMALL

    def pread(self, length, offset=0):
        raise OSError("device not ready")


class FailingEngine(ChunkEngine):
    def get(self, chunk_id):
        return FailingHandle()


class TestLookupOutcomes:
    def test_invalid_hex_raises(self, builder):
        with pytest.raises(InvalidArgumentError) as exc_info:
            reader_for(builder.build()).read_chunk_content("abc", out=io.StringIO())

        assert exc_info.value.error_code == "ARG_002"

    def test_unknown_format_raises_naming_accepted_values(self, builder):
        builder.add_chunk(b"\x01", b"data")

        with pytest.raises(InvalidArgumentError) as exc_info:
            reader_for(builder.build()).read_chunk_content("01", "yaml", out=io.StringIO())

        assert exc_info.value.error_code == "ARG_003"
        for name in ("hex", "binary", "text"):
            assert name in exc_info.value.message

    def test_chunk_not_found_is_reported(self, builder):
        out = io.StringIO()

        result = reader_for(builder.build()).read_chunk_content("beef", out=out)

        assert result.status == STATUS_CHUNK_NOT_FOUND
        assert not result.found
        assert out.getvalue() == "Chunk not found: beef\n"

    def test_chunk_data_not_found_is_reported(self, builder):
        builder.add_chunk(b"\xbe\xef", b"payload", store_data=False)
        out = io.StringIO()

        result = reader_for(builder.build()).read_chunk_content("BEEF", out=out)

        assert result.status == STATUS_DATA_NOT_FOUND
        assert result.meta.length == 7
        assert out.getvalue() == "Chunk data not found: BEEF\n"

    def test_short_read_is_fatal(self, builder):
        builder.add_chunk(b"\x01", b"abc", length=10)

        with pytest.raises(StorageIOError) as exc_info:
            reader_for(builder.build()).read_chunk_content("01", out=io.StringIO())

        assert exc_info.value.error_code == "IO_002"
        assert "expected 10 bytes, got 3" in exc_info.value.message

    def test_read_failure_wrapped(self, builder):
        builder.add_chunk(b"\x01", b"abc")
        storage = builder.build()
        reader = ChunkContentReader(storage.meta_store, FailingEngine())

        with pytest.raises(StorageIOError) as exc_info:
            reader.read_chunk_content("01", out=io.StringIO())

        assert "device not ready" in exc_info.value.message


class TestChunkInfo:
    def test_metadata_block(self, builder):
        builder.add_chunk(
            b"\x01\x02",
            b"x" * 1024,
            chunk_size=CHUNK_SIZE_SMALL,
            chain_ver=3,
            chunk_ver=12,
            checksum=0xAB,
            uncommitted=True,
        )
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("0102", out=out)
        lines = out.getvalue().splitlines()

        assert lines[0] == "=== Chunk Information ==="
        assert "Chunk ID: 0102" in lines
        assert "Size: 1.00 KB (1024)" in lines
        assert "Allocated Size: 64.00 KB (65536)" in lines
        assert "Utilization: 1.56%" in lines
        assert "Chain Version: 3" in lines
        assert "Chunk Version: 12" in lines
        assert "Checksum: 0x000000ab" in lines
        assert "Uncommitted: Yes" in lines


class TestContentFormats:
    def test_hex_output(self, builder):
        builder.add_chunk(b"\x01", bytes(100))
        out = io.StringIO()

        result = reader_for(builder.build()).read_chunk_content("01", "hex", out=out)
        text = out.getvalue()
        dump = text.split("=== Chunk Content (Hex) ===\n", 1)[1]

        assert result.status == STATUS_OK
        assert dump.splitlines()[0].startswith("00000000")
        assert len(dump.splitlines()) == 7

    def test_text_output_of_zero_bytes(self, builder):
        builder.add_chunk(b"\x01", bytes(100))
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("01", "text", out=out)
        body = out.getvalue().split("=== Chunk Content (Text) ===\n", 1)[1]

        assert body == "\x00" * 100 + "\n"

    def test_text_output_replaces_invalid_utf8(self, builder):
        builder.add_chunk(b"\x01", b"ok\xff\xfeend")
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("01", "text", out=out)

        assert "ok��end" in out.getvalue()

    def test_text_output_on_ascii_stream(self, builder):
        builder.add_chunk(b"\x01", b"ok\xffend")
        out = io.TextIOWrapper(io.BytesIO(), encoding="ascii")

        reader_for(builder.build()).read_chunk_content("01", "text", out=out)
        out.flush()
        written = out.buffer.getvalue().decode("utf-8")

        assert written.endswith("=== Chunk Content (Text) ===\nok\ufffdend\n")

    def test_binary_output_is_byte_exact(self, builder):
        payload = bytes(range(256))
        builder.add_chunk(b"\x01", payload)
        out, raw = io.StringIO(), io.BytesIO()

        reader_for(builder.build()).read_chunk_content("01", "binary", out=out, binary_out=raw)

        assert raw.getvalue() == payload
        assert "Chunk Content" not in out.getvalue()

    def test_binary_without_byte_stream_raises(self, builder):
        builder.add_chunk(b"\x01", b"abc")

        with pytest.raises(StorageIOError):
            reader_for(builder.build()).read_chunk_content("01", "binary", out=io.StringIO())


class TestOutputFile:
    @pytest.mark.parametrize(
        "content_format,expected",
        [
            ("binary", b"hi\xff"),
            ("text", "hi�".encode("utf-8")),
            ("hex", b"00000000  68 69 ff" + b" " * 41 + b" |hi.|\n"),
        ],
    )
    def test_writes_each_format(self, builder, tmp_path, content_format, expected):
        builder.add_chunk(b"\x01", b"hi\xff")
        target = tmp_path / "out.bin"
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content(
            "01", content_format, output_file=str(target), out=out
        )

        assert target.read_bytes() == expected
        assert f"Content written to: {target}" in out.getvalue()

    def test_existing_file_overwritten(self, builder, tmp_path):
        builder.add_chunk(b"\x01", b"new")
        target = tmp_path / "out.bin"
        target.write_bytes(b"old content that is longer")

        reader_for(builder.build()).read_chunk_content(
            "01", "binary", output_file=target, out=io.StringIO()
        )

        assert target.read_bytes() == b"new"

    def test_unwritable_destination_raises(self, builder, tmp_path):
        builder.add_chunk(b"\x01", b"abc")
        target = tmp_path / "missing-dir" / "out.bin"

        with pytest.raises(StorageIOError) as exc_info:
            reader_for(builder.build()).read_chunk_content(
                "01", "binary", output_file=target, out=io.StringIO()
            )

        assert exc_info.value.error_code == "IO_003"


class TestPreview:
    def test_preview_of_300_byte_chunk(self, builder):
        builder.add_chunk(b"\x01", b"a" * 256 + b"b" * 44)
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("01", "hex", show_preview=True, out=out)
        preview = out.getvalue().split("=== Text Preview (first 256 bytes) ===\n", 1)[1]

        assert preview == "a" * 256 + "\n... (44 more bytes)\n"

    def test_preview_of_short_chunk_has_no_remainder_note(self, builder):
        builder.add_chunk(b"\x01", b"short")
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("01", "hex", show_preview=True, out=out)

        assert out.getvalue().endswith("=== Text Preview (first 256 bytes) ===\nshort\n")

    def test_no_preview_for_text_format(self, builder):
        builder.add_chunk(b"\x01", b"short")
        out = io.StringIO()

        reader_for(builder.build()).read_chunk_content("01", "text", show_preview=True, out=out)

        assert "Text Preview" not in out.getvalue()

    def test_configurable_preview_length(self, builder):
        builder.add_chunk(b"\x01", b"0123456789")
        out = io.StringIO()

        reader_for(builder.build(), preview_bytes=4).read_chunk_content(
            "01", "hex", show_preview=True, out=out
        )

        assert "first 4 bytes" in out.getvalue()
        assert "0123\n... (6 more bytes)\n" in out.getvalue()

    def test_preview_on_ascii_stream(self, builder):
        builder.add_chunk(b"\x01", b"caf\xc3\xa9\xff")
        out = io.TextIOWrapper(io.BytesIO(), encoding="ascii")

        reader_for(builder.build()).read_chunk_content("01", "hex", show_preview=True, out=out)
        out.flush()
        written = out.buffer.getvalue().decode("utf-8")

        assert written.endswith("=== Text Preview (first 256 bytes) ===\ncafé�\n")


def test_decode_text_never_fails():
    assert decode_text(bytes(range(256))).count("�") == 128
