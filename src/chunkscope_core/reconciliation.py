"""
Reconciliation Engine - cross-checks allocator accounting against records.

Two independent passes over the same metadata:

1. For every size class the allocator is rebuilt by replaying the whole
   store from a fresh cursor; its counters give ``allocated - reserved``.
2. A single flat scan of the chunk-record key range decodes each record,
   references its slot on the owning allocator and tallies it per class.

The passes are joined per size class; any difference means the allocator's
persisted state and the chunk records have drifted apart.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO, Tuple

from chunkscope_core.exceptions import AccountingMismatchError, SerializationError
from chunkscope_core.sizes import format_size
from chunkscope_core.utils import get_logger
from chunkscope_db.allocator import AllocatorCounter
from chunkscope_db.interfaces import AllocatorLoader, ChunkAllocator, MetaStore
from chunkscope_db.models import size_classes
from chunkscope_db.scan import iter_chunk_records


@dataclass
class ReconciliationRow:
    """Accounting of one size class from both vantage points."""

    chunk_size: int
    used: int
    reserved: int
    full_groups: int
    active_groups: int
    observed: int = 0
    observed_slots: int = 0

    @property
    def shared_slots(self) -> int:
        """Records beyond the first that point at an already observed slot."""
        return self.observed - self.observed_slots

    @property
    def consistent(self) -> bool:
        return self.used == self.observed


@dataclass
class AllocationSummary:
    """Per-size-class reconciliation result, smallest class first."""

    rows: List[ReconciliationRow] = field(default_factory=list)

    def row(self, chunk_size: int) -> Optional[ReconciliationRow]:
        for row in self.rows:
            if row.chunk_size == chunk_size:
                return row
        return None

    @property
    def used(self) -> Dict[int, int]:
        return {row.chunk_size: row.used for row in self.rows}

    @property
    def reserved(self) -> Dict[int, int]:
        return {row.chunk_size: row.reserved for row in self.rows}

    @property
    def observed(self) -> Dict[int, int]:
        return {row.chunk_size: row.observed for row in self.rows}

    @property
    def group_counts(self) -> Dict[int, Tuple[int, int]]:
        return {row.chunk_size: (row.full_groups, row.active_groups) for row in self.rows}

    def mismatches(self) -> Dict[int, Tuple[int, int]]:
        """chunk_size -> (allocator_used, observed) for inconsistent classes."""
        return {row.chunk_size: (row.used, row.observed) for row in self.rows if not row.consistent}


class ReconciliationEngine:
    """
    Rebuilds allocator state for every size class and verifies it.

    Args:
        meta_store: Read-only metadata store
        allocator_loader: Replays the store into per-class allocators
    """

    def __init__(self, meta_store: MetaStore, allocator_loader: AllocatorLoader) -> None:
        self.meta_store = meta_store
        self.allocator_loader = allocator_loader
        self.logger = get_logger(__name__)

    def _load_allocators(self) -> Tuple[Dict[int, ChunkAllocator], List[ReconciliationRow]]:
        allocators: Dict[int, ChunkAllocator] = {}
        rows: List[ReconciliationRow] = []

        for chunk_size in size_classes():
            counter = AllocatorCounter(chunk_size)
            with self.meta_store.iterator() as it:
                allocator = self.allocator_loader.load(it, counter, chunk_size)

            allocated = counter.allocated_chunks()
            reserved = counter.reserved_chunks()
            allocators[chunk_size] = allocator
            rows.append(
                ReconciliationRow(
                    chunk_size=chunk_size,
                    used=allocated - reserved,
                    reserved=reserved,
                    full_groups=len(allocator.full_groups),
                    active_groups=len(allocator.active_groups),
                )
            )

        return allocators, rows

    def _tally_records(self, allocators: Dict[int, ChunkAllocator]) -> Dict[int, int]:
        tally = {chunk_size: 0 for chunk_size in allocators}

        with self.meta_store.iterator() as it:
            for chunk_id, meta in iter_chunk_records(it):
                allocator = allocators.get(meta.chunk_size)
                if allocator is None:
                    raise SerializationError(
                        f"Chunk {chunk_id.hex()} has unsupported size {meta.chunk_size}",
                        error_code="SER_002",
                        details={"chunk_id": chunk_id.hex(), "chunk_size": meta.chunk_size},
                    )
                allocator.reference(meta.pos, True)
                tally[meta.chunk_size] += 1

        return tally

    def compute_summary(self) -> AllocationSummary:
        """
        Run both accounting passes and join them.

        Returns:
            AllocationSummary with allocator-derived and observed counts.
            Consistency is NOT checked here; see verify().

        Raises:
            SerializationError: If a record cannot be decoded.
        """
        self.logger.info("summary_started", size_classes=len(size_classes()))

        allocators, rows = self._load_allocators()
        tally = self._tally_records(allocators)

        for row in rows:
            row.observed = tally[row.chunk_size]
            row.observed_slots = allocators[row.chunk_size].observed_chunks
            if row.shared_slots:
                self.logger.warning(
                    "shared_slot_references",
                    chunk_size=row.chunk_size,
                    records=row.observed,
                    distinct_slots=row.observed_slots,
                )

        summary = AllocationSummary(rows=rows)
        self.logger.info(
            "summary_computed",
            total_used=sum(summary.used.values()),
            total_observed=sum(summary.observed.values()),
            total_reserved=sum(summary.reserved.values()),
        )
        return summary

    def verify(self, summary: AllocationSummary) -> None:
        """
        Raises:
            AccountingMismatchError: If any size class disagrees.
        """
        mismatches = summary.mismatches()
        if not mismatches:
            return

        self.logger.error(
            "accounting_mismatch",
            mismatches={str(size): list(counts) for size, counts in mismatches.items()},
        )
        described = ", ".join(
            f"{format_size(size)}: allocator {used} vs records {seen}"
            for size, (used, seen) in mismatches.items()
        )
        raise AccountingMismatchError(
            f"Allocator accounting does not match chunk records ({described})",
            mismatches=mismatches,
        )

    def show_summary(self, out: Optional[TextIO] = None) -> AllocationSummary:
        """Compute, print, then verify the summary."""
        summary = self.compute_summary()
        render_summary(summary, out or sys.stdout)
        self.verify(summary)
        return summary


def render_summary(summary: AllocationSummary, out: TextIO) -> None:
    def label(size: int) -> str:
        return f"  {format_size(size):<10} ({size} bytes)"

    print("=== Chunk Allocation Summary ===", file=out)

    print("\nAvailable size buckets:", file=out)
    for row in summary.rows:
        print(f"{label(row.chunk_size)}: {row.used} used chunks", file=out)

    print("\nReserved chunks per size:", file=out)
    for row in summary.rows:
        print(f"{label(row.chunk_size)}: {row.reserved} reserved chunks", file=out)

    print("\nGroup counts (full, active):", file=out)
    for row in summary.rows:
        print(
            f"{label(row.chunk_size)}: {row.full_groups} full, {row.active_groups} active groups",
            file=out,
        )

    print(
        "\nUse --list-size <SIZE> to see detailed chunk information (e.g., --list-size 4MB)",
        file=out,
    )
    print(
        "Use --read-chunk <CHUNK_ID> to read actual chunk content (e.g., --read-chunk a1b2c3d4...)",
        file=out,
    )
