"""
Content Inspector - extracts one chunk's bytes for debugging.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

from chunkscope_core.exceptions import InvalidArgumentError, StorageIOError
from chunkscope_core.hexcodec import format_hex_dump, parse_hex_chunk_id
from chunkscope_core.sizes import format_size
from chunkscope_core.utils import get_logger
from chunkscope_db.interfaces import ChunkEngine, ChunkHandle, MetaStore
from chunkscope_db.models import ChunkMeta

CONTENT_FORMATS = ("hex", "binary", "text")

STATUS_OK = "ok"
STATUS_CHUNK_NOT_FOUND = "chunk_not_found"
STATUS_DATA_NOT_FOUND = "data_not_found"


@dataclass
class ChunkReadResult:
    """Outcome of one inspection; ``content`` is None unless status is ok."""

    status: str
    chunk_id: bytes
    meta: Optional[ChunkMeta] = None
    content: Optional[bytes] = None

    @property
    def found(self) -> bool:
        return self.status == STATUS_OK


def decode_text(data: bytes) -> str:
    """UTF-8 decode, replacing invalid sequences with U+FFFD."""
    return data.decode("utf-8", errors="replace")


def validate_content_format(content_format: str) -> str:
    if content_format not in CONTENT_FORMATS:
        raise InvalidArgumentError(
            f"Invalid content format: {content_format}. Use 'hex', 'binary', or 'text'",
            error_code="ARG_003",
            details={"content_format": content_format},
        )
    return content_format


class ChunkContentReader:
    """
    Reads a single chunk by id and renders it.

    Args:
        meta_store: Read-only metadata store (point lookups)
        engine: Chunk data access
        preview_bytes: Bytes decoded by the text preview
    """

    def __init__(self, meta_store: MetaStore, engine: ChunkEngine, preview_bytes: int = 256) -> None:
        self.meta_store = meta_store
        self.engine = engine
        self.preview_bytes = preview_bytes
        self.logger = get_logger(__name__)

    def read_chunk_content(
        self,
        chunk_id_hex: str,
        content_format: str = "hex",
        output_file: Optional[Union[str, Path]] = None,
        show_preview: bool = False,
        out: Optional[TextIO] = None,
        binary_out: Optional[BinaryIO] = None,
    ) -> ChunkReadResult:
        """
        Look up a chunk, print its metadata and emit its content.

        Missing metadata or missing data are reported on ``out`` and
        returned as a non-ok status; they are not errors.

        Args:
            chunk_id_hex: Chunk id as a hex string
            content_format: "hex", "binary" or "text"
            output_file: Write content here instead of stdout
            show_preview: Also print a text preview (ignored for "text")
            out: Text stream for reports (default: sys.stdout)
            binary_out: Byte stream for binary content (default: out.buffer)

        Raises:
            InvalidArgumentError: Malformed id or unknown format
            StorageIOError: Chunk read failed or the output file could not be written
        """
        out = out or sys.stdout
        chunk_id = parse_hex_chunk_id(chunk_id_hex)
        validate_content_format(content_format)

        meta = self.meta_store.get_chunk_meta(chunk_id)
        if meta is None:
            self.logger.info("chunk_not_found", chunk_id=chunk_id_hex)
            print(f"Chunk not found: {chunk_id_hex}", file=out)
            return ChunkReadResult(STATUS_CHUNK_NOT_FOUND, chunk_id)

        chunk = self.engine.get(chunk_id)
        if chunk is None:
            self.logger.warning("chunk_data_not_found", chunk_id=chunk_id_hex, length=meta.length)
            print(f"Chunk data not found: {chunk_id_hex}", file=out)
            return ChunkReadResult(STATUS_DATA_NOT_FOUND, chunk_id, meta=meta)

        buffer = self._read(chunk, meta, chunk_id_hex)
        self.logger.info(
            "chunk_read",
            chunk_id=chunk_id_hex,
            length=meta.length,
            capacity=chunk.capacity,
            content_format=content_format,
        )

        self._display_chunk_info(chunk_id_hex, meta, chunk, out)

        if output_file is not None:
            self._write_to_file(buffer, content_format, Path(output_file), out)
        else:
            self._write_to_stdout(buffer, content_format, out, binary_out)

        if show_preview and content_format != "text":
            self._show_text_preview(buffer, out)

        return ChunkReadResult(STATUS_OK, chunk_id, meta=meta, content=buffer)

    def _read(self, chunk: ChunkHandle, meta: ChunkMeta, chunk_id_hex: str) -> bytes:
        try:
            buffer = chunk.pread(meta.length, 0)
        except OSError as e:
            raise StorageIOError(
                f"Failed to read chunk {chunk_id_hex}: {e}",
                error_code="IO_002",
                details={"chunk_id": chunk_id_hex},
                original_exception=e,
            ) from e

        if len(buffer) != meta.length:
            raise StorageIOError(
                f"Short read on chunk {chunk_id_hex}: expected {meta.length} bytes, "
                f"got {len(buffer)}",
                error_code="IO_002",
                details={"chunk_id": chunk_id_hex, "expected": meta.length, "read": len(buffer)},
            )
        return bytes(buffer)

    def _display_chunk_info(
        self, chunk_id_hex: str, meta: ChunkMeta, chunk: ChunkHandle, out: TextIO
    ) -> None:
        capacity = chunk.capacity
        util = meta.length / capacity * 100.0 if capacity else 0.0
        print("=== Chunk Information ===", file=out)
        print(f"Chunk ID: {chunk_id_hex}", file=out)
        print(f"Size: {format_size(meta.length)} ({meta.length})", file=out)
        print(f"Allocated Size: {format_size(capacity)} ({capacity})", file=out)
        print(f"Utilization: {util:.2f}%", file=out)
        print(f"Chain Version: {meta.chain_ver}", file=out)
        print(f"Chunk Version: {meta.chunk_ver}", file=out)
        print(f"Checksum: 0x{meta.checksum:08x}", file=out)
        print(f"Uncommitted: {'Yes' if meta.uncommitted else 'No'}", file=out)
        print(file=out)

    def _write_to_file(self, buffer: bytes, content_format: str, path: Path, out: TextIO) -> None:
        if content_format == "hex":
            payload = format_hex_dump(buffer).encode("ascii")
        elif content_format == "text":
            payload = decode_text(buffer).encode("utf-8")
        else:
            payload = buffer

        try:
            with open(path, "wb") as f:
                f.write(payload)
        except OSError as e:
            raise StorageIOError(
                f"Failed to write output file {path}: {e}",
                error_code="IO_003",
                details={"path": str(path)},
                original_exception=e,
            ) from e

        self.logger.info("content_written", path=str(path), bytes=len(payload))
        print(f"Content written to: {path}", file=out)

    def _write_to_stdout(
        self, buffer: bytes, content_format: str, out: TextIO, binary_out: Optional[BinaryIO]
    ) -> None:
        if content_format == "hex":
            print("=== Chunk Content (Hex) ===", file=out)
            out.write(format_hex_dump(buffer))
        elif content_format == "text":
            print("=== Chunk Content (Text) ===", file=out)
            self._print_text(decode_text(buffer), out)
        else:
            stream = binary_out if binary_out is not None else getattr(out, "buffer", None)
            if stream is None:
                raise StorageIOError(
                    "Output stream does not accept binary data; use --output-file",
                    error_code="IO_003",
                )
            try:
                out.flush()
                stream.write(buffer)
                stream.flush()
            except OSError as e:
                raise StorageIOError(
                    f"Failed to write to stdout: {e}",
                    error_code="IO_003",
                    original_exception=e,
                ) from e

    def _show_text_preview(self, buffer: bytes, out: TextIO) -> None:
        print(f"\n=== Text Preview (first {self.preview_bytes} bytes) ===", file=out)
        self._print_text(decode_text(buffer[: self.preview_bytes]), out)
        if len(buffer) > self.preview_bytes:
            print(f"... ({len(buffer) - self.preview_bytes} more bytes)", file=out)

    def _print_text(self, text: str, out: TextIO) -> None:
        """Print decoded text without depending on the stream's encoding."""
        stream = getattr(out, "buffer", None)
        if stream is None:
            encoding = getattr(out, "encoding", None)
            if encoding:
                text = text.encode(encoding, errors="replace").decode(encoding)
            print(text, file=out)
            return

        out.flush()
        stream.write(text.encode("utf-8") + b"\n")
        stream.flush()
