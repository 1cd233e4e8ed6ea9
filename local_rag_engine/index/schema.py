from __future__ import annotations

import time
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class Document(BaseModel):
    id: str
    title: str
    content: str
    upload_date: int = Field(default_factory=_now_ms)   # epoch millis
    chunk_count: int = 0                                 # written back on ingest


class Chunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str                    # "{doc_id}::chunk::{order}"
    doc_id: str
    doc_title: str
    text: str                  # content[start:end]
    order: int
    start: int
    end: int


class Source(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    doc_id: str
    doc_title: str
    snippet: str
    score: float
    text: str = ""             # full chunk text the score was computed on


class AnswerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    answer: str
    sources: Tuple[Source, ...] = ()
    confidence: float = 0.0


class KnowledgeStats(BaseModel):
    document_count: int
    chunk_count: int
    total_chars: int
