from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .answer.extract import synthesize
from .cache import ResponseCache
from .config import EngineConfig
from .errors import DuplicateChunkIdError
from .index.schema import AnswerResult, Document, KnowledgeStats
from .index.store import ChunkIndex
from .ingest.chunker import chunk_document
from .retrieve.lexical import Retriever
from .retrieve.tokenize import normalize_query
from .utils.log import ActivityLog

logger = logging.getLogger(__name__)


class QueryRequest(BaseModel):
    text: str
    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)


class QueryResponse(BaseModel):
    request_id: str
    query: str
    result: AnswerResult
    cached: bool
    elapsed_ms: int


class Engine:
    """
    The knowledge base: chunk index, retriever, synthesizer and response cache
    behind the host-facing operations (ingest, reingest, remove_document,
    answer, handle).

    Each Engine owns its state; independent instances never share an index
    or cache. The index lock and the cache lock are never held together.
    """

    def __init__(self, config: Optional[EngineConfig] = None, activity: Optional[ActivityLog] = None):
        self.config = config or EngineConfig()
        self.index = ChunkIndex()
        self.retriever = Retriever(self.index, snippet_chars=self.config.retrieval.snippet_chars)
        self.cache = ResponseCache(max_entries=self.config.cache.max_entries)
        self.activity = activity or ActivityLog()
        self._docs: Dict[str, Document] = {}
        self._docs_lock = threading.Lock()
        self.activity.write("Local engine initialized.")

    # ---- ingestion -------------------------------------------------------

    def ingest(self, document: Document) -> int:
        """Chunk and index `document`; writes back and returns its chunk_count."""
        ing = self.config.ingest
        chunks = chunk_document(
            document,
            chunk_chars=ing.chunk_chars,
            overlap_chars=ing.overlap_chars,
            boundary_window=ing.boundary_window,
        )
        try:
            existing = [c.id for c in self.index.all() if c.doc_id == document.id]
            with self._docs_lock:
                registered = document.id in self._docs
            if existing or registered:
                # Already indexed: the host must reingest() instead.
                raise DuplicateChunkIdError(existing or [f"{document.id}::chunk::0"])
            self.index.insert(chunks)
        except DuplicateChunkIdError as e:
            logger.error("Ingest of doc_id=%s rejected: %s", document.id, e)
            raise
        document.chunk_count = len(chunks)
        with self._docs_lock:
            self._docs[document.id] = document
        # New content can change any cached answer, including fallbacks.
        dropped = self.cache.clear()

        if not chunks:
            logger.warning("Document %r (%s) has no content; 0 chunks indexed", document.title, document.id)
        logger.info(
            "Ingested %r (%s): %d chunk(s); %d cached answer(s) dropped",
            document.title, document.id, len(chunks), dropped,
        )
        self.activity.write(
            f'Resource added: "{document.title}" ({len(chunks)} segments).',
            doc_id=document.id, chunks=len(chunks),
        )
        return len(chunks)

    def reingest(self, document: Document) -> int:
        """Replace a document's chunks after its content changed."""
        self.remove_document(document.id)
        return self.ingest(document)

    def remove_document(self, doc_id: str) -> int:
        """Removal hook: drop the document's chunks and any cached answer citing it."""
        removed = self.index.remove_by_document(doc_id)
        with self._docs_lock:
            doc = self._docs.pop(doc_id, None)
        if doc is not None:
            doc.chunk_count = 0
        stale = self.cache.invalidate_document(doc_id)
        logger.info("Removed doc_id=%s: %d chunk(s), %d cached answer(s)", doc_id, removed, stale)
        self.activity.write("Resource purged from index.", doc_id=doc_id, chunks=removed)
        return removed

    # ---- querying --------------------------------------------------------

    def _answer(self, query_text: str) -> Tuple[AnswerResult, bool]:
        key = normalize_query(query_text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("cache hit key=%r", key)
            return cached, True
        # Read before the index snapshot: a removal or ingest that lands while
        # this answer is computed bumps the generation and the put is dropped.
        generation = self.cache.generation

        ret = self.config.retrieval
        ans = self.config.answer
        sources = self.retriever.retrieve(query_text, top_k=ret.top_k, min_score=ret.min_score)
        result = synthesize(
            query_text,
            sources,
            max_sources=ans.max_sources,
            max_chars=ans.max_chars,
            min_confidence=ans.min_confidence,
        )
        self.cache.put(key, result, generation=generation)
        return result, False

    def answer(self, query_text: str) -> AnswerResult:
        self.activity.write(f'Query Received: "{query_text}"')
        result, cached = self._answer(query_text)
        self._log_result(result, cached)
        return result

    def handle(self, request: QueryRequest) -> QueryResponse:
        """Request/response form of `answer` for hosts that track a pending state."""
        t0 = time.perf_counter()
        self.activity.write(f'Query Received: "{request.text}"', request_id=request.request_id)
        result, cached = self._answer(request.text)
        self._log_result(result, cached)
        return QueryResponse(
            request_id=request.request_id,
            query=request.text,
            result=result,
            cached=cached,
            elapsed_ms=int((time.perf_counter() - t0) * 1000),
        )

    def _log_result(self, result: AnswerResult, cached: bool) -> None:
        pct = round(result.confidence * 100)
        origin = "Cache hit" if cached else "Local context synthesized"
        self.activity.write(f"{origin} (Match: {pct}%).", confidence=result.confidence)
        logger.info("%s: confidence=%.3f sources=%s", origin, result.confidence, [s.id for s in result.sources])

    # ---- repository view -------------------------------------------------

    def documents(self) -> List[Document]:
        with self._docs_lock:
            return list(self._docs.values())

    def stats(self) -> KnowledgeStats:
        docs = self.documents()
        return KnowledgeStats(
            document_count=len(docs),
            chunk_count=len(self.index),
            total_chars=sum(len(d.content) for d in docs),
        )
