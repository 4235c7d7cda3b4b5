"""
Linear scan over the chunk metadata key range.
"""

from typing import Iterator, Tuple

from chunkscope_db.codec import decode_chunk_meta
from chunkscope_db.interfaces import MetaIterator, MetaStore
from chunkscope_db.keys import MetaKey
from chunkscope_db.models import ChunkMeta


def iter_chunk_records(it: MetaIterator) -> Iterator[Tuple[bytes, ChunkMeta]]:
    """
    Yield (chunk_id, meta) for every chunk metadata record.

    Seeks to the chunk-meta prefix, skips the bare sentinel key if present
    and stops at the first key outside the prefix.
    """
    start = MetaKey.chunk_meta_key_prefix()
    it.seek(start)

    if it.valid() and it.key() == start:
        it.next()

    while it.valid():
        key = it.key()
        if not MetaKey.is_chunk_meta_key(key):
            break
        yield MetaKey.parse_chunk_meta_key(key), decode_chunk_meta(it.value())
        it.next()


def scan_chunk_records(meta_store: MetaStore) -> Iterator[Tuple[bytes, ChunkMeta]]:
    """Same as iter_chunk_records on a fresh cursor that is closed afterwards."""
    with meta_store.iterator() as it:
        yield from iter_chunk_records(it)
