from __future__ import annotations

import re
from typing import FrozenSet, List, Sequence

from ..index.schema import AnswerResult, Source
from ..ingest.clean import collapse_whitespace
from ..retrieve.tokenize import token_set

FALLBACK_ANSWER = "No confident local match found in the knowledge base."
TRUNCATION_MARKER = " ... [truncated]"

_SENT_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def _relevant_sentences(snippet: str, query_tokens: FrozenSet[str]) -> List[str]:
    sents = [s.strip() for s in _SENT_SPLIT_RE.split(snippet) if s.strip()]
    hits = [s for s in sents if token_set(s) & query_tokens]
    return hits or sents


def _truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    keep = max(0, max_chars - len(TRUNCATION_MARKER))
    return text[:keep].rstrip() + TRUNCATION_MARKER


def synthesize(
    query: str,
    sources: Sequence[Source],
    max_sources: int = 3,
    max_chars: int = 1200,
    min_confidence: float = 0.0,
) -> AnswerResult:
    """
    Build an extractive answer from ranked sources.

    Confidence is the best source score. From each of the first `max_sources`
    sources the sentences of the full chunk text (the snippet when no text is
    carried) that mention a query term are quoted under the document title;
    sentences already quoted from an earlier (overlapping) chunk are skipped.
    The query only matters through its token set, so equal normalized queries
    give byte-identical answers.
    """
    if max_chars <= len(TRUNCATION_MARKER):
        raise ValueError(f"max_chars must be greater than {len(TRUNCATION_MARKER)}")
    sources = tuple(sources)
    if not sources:
        return AnswerResult(answer=FALLBACK_ANSWER, sources=(), confidence=0.0)

    confidence = float(sources[0].score)
    if confidence < min_confidence:
        return AnswerResult(answer=FALLBACK_ANSWER, sources=sources, confidence=confidence)

    q = token_set(query)
    seen: set[str] = set()
    blocks: List[str] = []
    for src in sources[: max(1, max_sources)]:
        fresh = []
        for sent in _relevant_sentences(collapse_whitespace(src.text or src.snippet), q):
            key = sent.lower()
            if key in seen:
                continue
            seen.add(key)
            fresh.append(sent)
        if fresh:
            blocks.append(f'According to "{src.doc_title}": ' + " ".join(fresh))

    answer = _truncate("\n\n".join(blocks).strip(), max_chars)
    return AnswerResult(answer=answer, sources=sources, confidence=confidence)
