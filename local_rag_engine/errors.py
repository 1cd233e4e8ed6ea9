from __future__ import annotations

from typing import Iterable


class LocalRagError(Exception):
    """Base class for engine errors."""


class DuplicateChunkIdError(LocalRagError):
    """Raised when an insert would put a second chunk with an existing id in the index.

    This is an upstream id-generation bug (or a re-ingest without removal),
    never a user-facing condition.
    """

    def __init__(self, chunk_ids: Iterable[str]):
        self.chunk_ids = sorted(set(chunk_ids))
        preview = ", ".join(self.chunk_ids[:5])
        more = f" (+{len(self.chunk_ids) - 5} more)" if len(self.chunk_ids) > 5 else ""
        super().__init__(f"Duplicate chunk id(s) in index: {preview}{more}")
