from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class IngestConfig(BaseModel):
    chunk_chars: int = Field(500, gt=0)
    overlap_chars: int = Field(50, ge=0)
    boundary_window: int = Field(120, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "IngestConfig":
        if self.overlap_chars >= self.chunk_chars:
            raise ValueError("ingest.overlap_chars must be smaller than ingest.chunk_chars")
        return self


class RetrievalConfig(BaseModel):
    top_k: int = Field(3, ge=1)
    min_score: float = Field(0.1, ge=0.0, le=1.0)
    snippet_chars: int = Field(600, ge=0)


class AnswerConfig(BaseModel):
    max_sources: int = Field(3, ge=1, le=3)
    max_chars: int = Field(1200, ge=64)
    min_confidence: float = Field(0.0, ge=0.0, le=1.0)


class CacheConfig(BaseModel):
    max_entries: Optional[int] = Field(256, ge=1)   # None = unbounded


class EngineConfig(BaseModel):
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    answer: AnswerConfig = Field(default_factory=AnswerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Read a YAML config; a missing path (None) or empty file gives the defaults."""
    if path is None:
        return EngineConfig()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return EngineConfig.model_validate(data)
