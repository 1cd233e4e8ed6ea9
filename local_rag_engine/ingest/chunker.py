import re
from typing import List, Optional, Tuple

from ..index.schema import Chunk, Document

# Blank line(s) between paragraphs; the cut goes after the whole gap.
_PARA_BREAK_RE = re.compile(r"\n[ \t]*\n\s*")
# Sentence end: terminal punctuation, optional closing quote/bracket, whitespace.
_SENT_BREAK_RE = re.compile(r"[.!?]+[\"')\]]*\s+")


def _last_break(pattern: re.Pattern, text: str, lo: int, hi: int) -> Optional[int]:
    end = None
    for m in pattern.finditer(text, lo, hi):
        end = m.end()
    return end


def _find_cut(text: str, start: int, hard_end: int, overlap: int, window: int) -> int:
    # Never reach back to or before start + overlap, so the next start moves forward.
    lo = max(start + overlap + 1, hard_end - window)
    if lo >= hard_end:
        return hard_end
    for pattern in (_PARA_BREAK_RE, _SENT_BREAK_RE):
        cut = _last_break(pattern, text, lo, hard_end)
        if cut is not None:
            return cut
    return hard_end


def split_spans(
    text: str, chunk_chars: int, overlap_chars: int, boundary_window: int = 120
) -> List[Tuple[int, int]]:
    """
    Split `text` into (start, end) spans of at most `chunk_chars` characters,
    consecutive spans sharing exactly `overlap_chars` characters. Cuts snap back
    to the nearest paragraph break, then sentence end, within `boundary_window`
    characters of the target length; otherwise they fall at the exact length.
    """
    if chunk_chars <= 0:
        raise ValueError("chunk_chars must be > 0")
    if overlap_chars < 0:
        raise ValueError("overlap_chars must be >= 0")
    if overlap_chars >= chunk_chars:
        raise ValueError("overlap_chars must be smaller than chunk_chars")
    if boundary_window < 0:
        raise ValueError("boundary_window must be >= 0")

    if not text or not text.strip():
        return []

    spans: List[Tuple[int, int]] = []
    n = len(text)
    start = 0
    while start < n:
        hard_end = min(start + chunk_chars, n)
        if hard_end >= n:
            end = n
        else:
            end = _find_cut(text, start, hard_end, overlap_chars, boundary_window)
        spans.append((start, end))
        if end >= n:
            break
        start = end - overlap_chars
    return spans


def chunk_document(
    document: Document,
    chunk_chars: int = 500,
    overlap_chars: int = 50,
    boundary_window: int = 120,
) -> List[Chunk]:
    content = document.content
    return [
        Chunk(
            id=f"{document.id}::chunk::{order}",
            doc_id=document.id,
            doc_title=document.title,
            text=content[start:end],
            order=order,
            start=start,
            end=end,
        )
        for order, (start, end) in enumerate(
            split_spans(content, chunk_chars, overlap_chars, boundary_window)
        )
    ]
