"""
Chunk Browser - sorted, paginated listing of one size bucket.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import math
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO, Tuple

from chunkscope_core.exceptions import InvalidArgumentError
from chunkscope_core.hexcodec import chunk_id_to_hex, shorten_chunk_id
from chunkscope_core.sizes import format_size
from chunkscope_core.utils import get_logger
from chunkscope_db.interfaces import MetaStore
from chunkscope_db.models import ChunkMeta
from chunkscope_db.scan import scan_chunk_records

ChunkEntry = Tuple[bytes, ChunkMeta]


def utilization(actual: int, allocated: int) -> float:
    """Percentage of ``allocated`` used by ``actual``; 0.0 when nothing is allocated."""
    if allocated <= 0:
        return 0.0
    return actual / allocated * 100.0


@dataclass
class ChunkPage:
    """One page of a bucket listing plus bucket-wide totals."""

    chunk_size: int
    page: int
    page_size: int
    total_chunks: int
    total_pages: int
    total_actual_size: int
    total_allocated_size: int
    start_index: int
    entries: List[ChunkEntry] = field(default_factory=list)

    @property
    def average_utilization(self) -> float:
        return utilization(self.total_actual_size, self.total_allocated_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(
    entries: List[ChunkEntry], chunk_size: int, page_size: int, page: int
) -> ChunkPage:
    """
    Slice sorted entries into a 1-indexed page.

    A page past the last one yields an empty slice.

    Raises:
        InvalidArgumentError: If page_size or page is below 1.
    """
    if page_size < 1:
        raise InvalidArgumentError(
            f"Page size must be at least 1, got {page_size}",
            error_code="ARG_004",
            details={"page_size": page_size},
        )
    if page < 1:
        raise InvalidArgumentError(
            f"Page number must be at least 1, got {page}",
            error_code="ARG_004",
            details={"page": page},
        )

    total = len(entries)
    start = (page - 1) * page_size
    end = min(start + page_size, total)

    return ChunkPage(
        chunk_size=chunk_size,
        page=page,
        page_size=page_size,
        total_chunks=total,
        total_pages=math.ceil(total / page_size),
        total_actual_size=sum(meta.length for _, meta in entries),
        total_allocated_size=total * chunk_size,
        start_index=start,
        entries=entries[start:end],
    )


class ChunkBrowser:
    """
    Lists the chunks of a single size class.

    Args:
        meta_store: Read-only metadata store
        short_id_chars: Hex characters kept when compact ids are requested
    """

    def __init__(self, meta_store: MetaStore, short_id_chars: int = 16) -> None:
        self.meta_store = meta_store
        self.short_id_chars = short_id_chars
        self.logger = get_logger(__name__)

    def collect(self, chunk_size: int) -> List[ChunkEntry]:
        """All (chunk_id, meta) of ``chunk_size``, ordered by raw chunk id bytes."""
        entries = [
            (chunk_id, meta)
            for chunk_id, meta in scan_chunk_records(self.meta_store)
            if meta.chunk_size == chunk_size
        ]
        entries.sort(key=lambda entry: entry[0])
        return entries

    def list_chunks(
        self,
        chunk_size: int,
        page_size: int = 20,
        page: int = 1,
        short_ids: bool = False,
        out: Optional[TextIO] = None,
    ) -> ChunkPage:
        """Print one page of the bucket listing and return it."""
        out = out or sys.stdout
        entries = self.collect(chunk_size)
        chunk_page = paginate(entries, chunk_size, page_size, page)

        self.logger.info(
            "chunk_listing_completed",
            chunk_size=chunk_size,
            total_chunks=chunk_page.total_chunks,
            page=page,
            rows=len(chunk_page.entries),
        )

        if not entries:
            print(
                f"No chunks found for size bucket: {format_size(chunk_size)} ({chunk_size} bytes)",
                file=out,
            )
            print("Run without --list-size to see available size buckets", file=out)
            return chunk_page

        self._render_header(chunk_page, out)
        self._render_table(chunk_page, short_ids, out)
        self._render_pagination(chunk_page, out)
        return chunk_page

    def _render_header(self, chunk_page: ChunkPage, out: TextIO) -> None:
        size = chunk_page.chunk_size
        print("=== Detailed Chunk Information ===", file=out)
        print(f"Size bucket: {format_size(size)} ({size})", file=out)
        print(f"Total chunks: {chunk_page.total_chunks}", file=out)
        print(
            f"Total actual size: {format_size(chunk_page.total_actual_size)} "
            f"({chunk_page.total_actual_size})",
            file=out,
        )
        print(
            f"Total allocated size: {format_size(chunk_page.total_allocated_size)} "
            f"({chunk_page.total_allocated_size})",
            file=out,
        )
        print(f"Average utilization: {chunk_page.average_utilization:.2f}%", file=out)
        print(file=out)
        print(
            f"Page {chunk_page.page}/{chunk_page.total_pages} "
            f"(showing {len(chunk_page.entries)} chunks)",
            file=out,
        )

    def _render_table(self, chunk_page: ChunkPage, short_ids: bool, out: TextIO) -> None:
        id_width, total_width = (20, 130) if short_ids else (68, 175)
        print(
            f"{'Index':<8} {'Chunk ID (hex)':<{id_width}} {'Alloc Size':<15} {'Actual Len':<15} "
            f"{'Util %':<8} {'Chain Ver':<12} {'Chunk Ver':<12} {'Uncommit':<8}",
            file=out,
        )
        print("-" * total_width, file=out)

        size = chunk_page.chunk_size
        for offset, (chunk_id, meta) in enumerate(chunk_page.entries):
            chunk_id_hex = chunk_id_to_hex(chunk_id)
            if short_ids:
                chunk_id_hex = shorten_chunk_id(chunk_id_hex, self.short_id_chars)

            print(
                f"{chunk_page.start_index + offset + 1:<8} {chunk_id_hex:<{id_width}} "
                f"{format_size(size):<15} {format_size(meta.length):<15} "
                f"{utilization(meta.length, size):<8.2f} {meta.chain_ver:<12} "
                f"{meta.chunk_ver:<12} {'Yes' if meta.uncommitted else 'No':<8}",
                file=out,
            )

    def _render_pagination(self, chunk_page: ChunkPage, out: TextIO) -> None:
        print(file=out)
        if chunk_page.has_next:
            print(f"Use --page {chunk_page.page + 1} to see next page", file=out)
        if chunk_page.has_previous:
            print(f"Use --page {chunk_page.page - 1} to see previous page", file=out)
