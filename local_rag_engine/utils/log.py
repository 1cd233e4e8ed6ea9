from __future__ import annotations

import json
import threading
import time
from collections import deque
from pathlib import Path
from typing import List, Optional


class ActivityLog:
    """
    Rolling, timestamped record of engine events (newest first), the
    knowledge base's activity pane. Optionally mirrored to a JSONL file.
    """

    def __init__(self, max_entries: int = 50, path: Optional[Path] = None):
        self._entries: deque[str] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self.path = Path(path) if path else None
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, message: str, **fields) -> None:
        stamp = time.strftime("%H:%M:%S")
        with self._lock:
            self._entries.appendleft(f"[{stamp}] {message}")
            if self.path:
                obj = {"ts": time.strftime("%Y-%m-%dT%H:%M:%S"), "event": message, **fields}
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(obj, ensure_ascii=False) + "\n")

    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
