from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Optional

from .index.schema import AnswerResult

logger = logging.getLogger(__name__)


class ResponseCache:
    """
    Memo of normalized query -> AnswerResult. Results are frozen models, so a
    hit hands back the stored instance as is. With `max_entries` set, the
    least recently used entry is evicted first.

    Every clear or invalidation bumps `generation`. A writer that read the
    generation before computing its result passes it to `put`; the write is
    dropped if the cache was invalidated in the meantime.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, AnswerResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Optional[AnswerResult]:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return result

    def put(self, key: str, result: AnswerResult, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("cache put %r dropped: stale generation %d != %d", key, generation, self._generation)
                return False
            self._entries[key] = result
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("cache evict %r", evicted)
        return True

    def invalidate_document(self, doc_id: str) -> int:
        """Drop every entry whose sources cite `doc_id`."""
        with self._lock:
            stale = [k for k, r in self._entries.items() if any(s.doc_id == doc_id for s in r.sources)]
            for k in stale:
                del self._entries[k]
            self._generation += 1
        return len(stale)

    def clear(self) -> int:
        with self._lock:
            n = len(self._entries)
            self._entries.clear()
            self._generation += 1
        return n

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
