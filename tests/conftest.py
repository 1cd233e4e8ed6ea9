import sys
from pathlib import Path

import pytest

# Repo root = one level above tests/
REPO_ROOT = Path(__file__).resolve().parents[1]

# Ensure repo root is on sys.path so `import cli` and `local_rag_engine` resolve.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from local_rag_engine.index.schema import Chunk  # noqa: E402


@pytest.fixture
def make_chunk():
    def _make(doc_id: str, order: int, text: str, title: str = "Doc") -> Chunk:
        return Chunk(
            id=f"{doc_id}::chunk::{order}",
            doc_id=doc_id,
            doc_title=title,
            text=text,
            order=order,
            start=0,
            end=len(text),
        )

    return _make
