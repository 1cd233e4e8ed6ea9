from __future__ import annotations

import logging
import threading
from typing import Iterable, Iterator, List

from ..errors import DuplicateChunkIdError
from .schema import Chunk

logger = logging.getLogger(__name__)


class ChunkIndex:
    """
    In-memory, insertion-ordered collection of every chunk across all ingested
    documents. Writers are serialized by one lock; readers enumerate a snapshot
    taken under that lock, so a batch inserted by `insert` becomes visible all
    at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chunks: dict[str, Chunk] = {}   # dicts keep insertion order

    def insert(self, chunks: Iterable[Chunk]) -> int:
        batch: List[Chunk] = list(chunks)
        with self._lock:
            seen: set[str] = set()
            dupes: list[str] = []
            for c in batch:
                if c.id in self._chunks or c.id in seen:
                    dupes.append(c.id)
                seen.add(c.id)
            if dupes:
                raise DuplicateChunkIdError(dupes)
            for c in batch:
                self._chunks[c.id] = c
        logger.debug("Inserted %d chunk(s); index size=%d", len(batch), len(self))
        return len(batch)

    def remove_by_document(self, doc_id: str) -> int:
        with self._lock:
            doomed = [cid for cid, c in self._chunks.items() if c.doc_id == doc_id]
            for cid in doomed:
                del self._chunks[cid]
        logger.debug("Removed %d chunk(s) for doc_id=%s", len(doomed), doc_id)
        return len(doomed)

    def all(self) -> Iterator[Chunk]:
        with self._lock:
            snapshot = tuple(self._chunks.values())
        yield from snapshot

    def count_by_document(self, doc_id: str) -> int:
        with self._lock:
            return sum(1 for c in self._chunks.values() if c.doc_id == doc_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __contains__(self, chunk_id: object) -> bool:
        with self._lock:
            return chunk_id in self._chunks
