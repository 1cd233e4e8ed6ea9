from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import List

from ..index.schema import Document
from .clean import normalize_text

logger = logging.getLogger(__name__)

SUPPORTED = {".md", ".txt"}

_HEADING_RE = re.compile(r"^\s*#+\s+(.*)")


def _doc_id(path: Path) -> str:
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8", errors="ignore")).hexdigest()
    return f"doc-{digest[:12]}"


def _title(path: Path, text: str) -> str:
    for ln in text.splitlines():
        m = _HEADING_RE.match(ln)
        if m and m.group(1).strip():
            return m.group(1).strip()
        if ln.strip():
            break
    return path.stem.replace("_", " ").replace("-", " ").strip() or path.name


def load_text_document(path: str | Path) -> Document:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(path)
    text = normalize_text(path.read_text(encoding="utf-8", errors="ignore"))
    mtime_ms = int(path.stat().st_mtime * 1000)
    return Document(id=_doc_id(path), title=_title(path, text), content=text, upload_date=mtime_ms)


def load_text_documents(path: str | Path) -> List[Document]:
    """Load one supported file, or every supported file under a directory (sorted)."""
    path = Path(path)
    if path.is_file():
        return [load_text_document(path)]
    if not path.is_dir():
        raise FileNotFoundError(path)
    docs: List[Document] = []
    for f in sorted(path.rglob("*")):
        if not f.is_file() or f.suffix.lower() not in SUPPORTED:
            continue
        docs.append(load_text_document(f))
    logger.debug("Loaded %d document(s) from %s", len(docs), path)
    return docs
