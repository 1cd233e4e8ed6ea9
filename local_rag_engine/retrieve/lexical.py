from __future__ import annotations

import logging
from functools import lru_cache
from typing import FrozenSet, List, Tuple

from ..index.schema import Chunk, Source
from ..index.store import ChunkIndex
from ..ingest.clean import collapse_whitespace
from .tokenize import token_set

logger = logging.getLogger(__name__)


def make_snippet(text: str, max_chars: int = 600) -> str:
    s = collapse_whitespace(text)
    if max_chars > 0 and len(s) > max_chars:
        s = s[: max(0, max_chars - 3)].rstrip() + "..."
    return s


def overlap_score(query_tokens: FrozenSet[str], chunk_tokens: FrozenSet[str]) -> float:
    """Share of distinct query tokens that occur in the chunk, in [0, 1]."""
    if not query_tokens:
        return 0.0
    return len(query_tokens & chunk_tokens) / len(query_tokens)


class Retriever:
    """
    Full-scan lexical retriever over a ChunkIndex. Chunk token sets are
    memoized by chunk text, so re-scoring the same corpus stays cheap.
    """

    def __init__(self, index: ChunkIndex, snippet_chars: int = 600, token_cache_size: int = 4096):
        self.index = index
        self.snippet_chars = snippet_chars
        self._chunk_tokens = lru_cache(maxsize=token_cache_size)(token_set)

    def score_all(self, query: str) -> List[Tuple[Chunk, float]]:
        q = token_set(query)
        if not q:
            return []
        return [(c, overlap_score(q, self._chunk_tokens(c.text))) for c in self.index.all()]

    def retrieve(self, query: str, top_k: int = 3, min_score: float = 0.1) -> List[Source]:
        if top_k <= 0:
            return []
        scored = [(c, s) for c, s in self.score_all(query) if s > 0.0 and s >= min_score]
        # Stable sort: equal scores keep insertion order.
        scored.sort(key=lambda x: x[1], reverse=True)
        hits = [
            Source(
                id=c.id,
                doc_id=c.doc_id,
                doc_title=c.doc_title,
                snippet=make_snippet(c.text, self.snippet_chars),
                text=c.text,
                score=float(s),
            )
            for c, s in scored[:top_k]
        ]
        logger.debug(
            "retrieve q=%r top_k=%d min_score=%.2f -> %s",
            query,
            top_k,
            min_score,
            [(h.id, round(h.score, 3)) for h in hits],
        )
        return hits
