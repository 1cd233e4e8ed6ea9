from concurrent.futures import ThreadPoolExecutor

import pytest

from local_rag_engine.answer.extract import FALLBACK_ANSWER
from local_rag_engine.app import Engine, QueryRequest
from local_rag_engine.config import EngineConfig
from local_rag_engine.errors import DuplicateChunkIdError
from local_rag_engine.index.schema import Document
from local_rag_engine.ingest.samples import sample_documents

QUESTION = "What is the attendance requirement?"


@pytest.fixture
def engine():
    eng = Engine()
    for doc in sample_documents():
        eng.ingest(doc)
    return eng


def test_attendance_scenario(engine):
    res = engine.answer(QUESTION)
    assert res.sources
    assert res.sources[0].doc_title == "NLP Course Policy"
    assert res.sources[0].score > 0
    assert "75%" in res.answer
    assert res.confidence > 0


def test_chunk_count_matches_index(engine):
    docs = engine.documents()
    assert [d.id for d in docs] == ["doc-1", "doc-2"]
    for d in docs:
        assert d.chunk_count == engine.index.count_by_document(d.id)
        assert d.chunk_count >= 1
    assert engine.index.count_by_document("doc-1") > 1


def test_ingest_returns_and_writes_back_count():
    eng = Engine()
    doc = Document(id="x", title="X", content="Sentence one. " * 100)
    n = eng.ingest(doc)
    assert n == doc.chunk_count == len(eng.index) > 1


def test_blank_document_is_not_an_error():
    eng = Engine()
    doc = Document(id="blank", title="Blank", content="   \n ")
    assert eng.ingest(doc) == 0
    assert doc.chunk_count == 0
    assert eng.stats().document_count == 1


def test_remove_document(engine):
    before = engine.answer(QUESTION)
    assert any(s.doc_id == "doc-2" for s in before.sources)

    removed = engine.remove_document("doc-2")
    assert removed >= 1
    assert engine.index.count_by_document("doc-2") == 0
    assert [d.id for d in engine.documents()] == ["doc-1"]

    after = engine.answer(QUESTION)
    assert all(s.doc_id != "doc-2" for s in after.sources)
    assert after.answer == FALLBACK_ANSWER
    assert after.confidence == 0.0
    assert engine.remove_document("doc-2") == 0


def test_cache_hit_equals_first_answer(engine):
    first = engine.answer(QUESTION)
    second = engine.answer("attendance   REQUIREMENT")
    assert second == first
    assert engine.cache.hits == 1


def test_handle_reports_cache_state(engine):
    r1 = engine.handle(QueryRequest(text=QUESTION, request_id="r1"))
    r2 = engine.handle(QueryRequest(text=QUESTION, request_id="r2"))
    assert (r1.request_id, r1.cached) == ("r1", False)
    assert (r2.request_id, r2.cached) == ("r2", True)
    assert r1.result == r2.result
    assert r1.query == QUESTION
    assert r1.elapsed_ms >= 0


def test_cache_hit_skips_retrieval(engine, monkeypatch):
    engine.answer(QUESTION)

    def _boom(*a, **kw):
        raise AssertionError("retriever should not run on a cache hit")

    monkeypatch.setattr(engine.retriever, "retrieve", _boom)
    assert "75%" in engine.answer(QUESTION).answer


def test_ingest_refreshes_cached_answers():
    eng = Engine()
    miss = eng.answer("library hours")
    assert miss.answer == FALLBACK_ANSWER
    eng.ingest(Document(id="lib", title="Library", content="Library hours are 8am to 10pm."))
    hit = eng.answer("library hours")
    assert hit.confidence == 1.0
    assert "8am" in hit.answer


def test_removal_only_drops_cache_entries_citing_doc(engine):
    engine.answer(QUESTION)                         # cites doc-2
    engine.answer("When does fall admission start?")  # cites doc-1
    assert len(engine.cache) == 2
    engine.remove_document("doc-2")
    assert len(engine.cache) == 1


@pytest.mark.parametrize("query", ["", "   ", "what is the?"])
def test_empty_query_fallback(engine, query):
    res = engine.answer(query)
    assert res.answer == FALLBACK_ANSWER
    assert res.confidence == 0.0
    assert res.sources == ()


def test_empty_engine_fallback():
    res = Engine().answer(QUESTION)
    assert res.answer == FALLBACK_ANSWER
    assert res.confidence == 0.0


def test_second_ingest_of_same_doc_is_rejected(engine):
    doc = engine.documents()[1]
    with pytest.raises(DuplicateChunkIdError):
        engine.ingest(doc)
    blank = Document(id=doc.id, title=doc.title, content="")
    with pytest.raises(DuplicateChunkIdError):
        engine.ingest(blank)
    assert engine.index.count_by_document(doc.id) == doc.chunk_count


def test_reingest_replaces_chunks(engine):
    doc = engine.documents()[1]
    doc.content = "Attendance of 80% is now required to sit in the final exam."
    engine.reingest(doc)
    res = engine.answer("attendance")
    assert "80%" in res.answer
    assert "75%" not in res.answer
    assert doc.chunk_count == engine.index.count_by_document(doc.id) == 1


def test_engines_are_independent():
    a, b = Engine(), Engine()
    a.ingest(Document(id="d", title="D", content="Graduation is in July."))
    assert len(b.index) == 0
    assert b.answer("graduation").answer == FALLBACK_ANSWER
    assert a.answer("graduation").confidence == 1.0


def test_concurrent_ingestion_of_distinct_documents():
    eng = Engine(EngineConfig.model_validate({"ingest": {"chunk_chars": 80, "overlap_chars": 10}}))
    docs = [
        Document(id=f"d{i}", title=f"Doc {i}", content=f"Topic{i} is covered here. " * 20)
        for i in range(16)
    ]
    with ThreadPoolExecutor(max_workers=8) as pool:
        counts = list(pool.map(eng.ingest, docs))
    assert sum(counts) == len(eng.index)
    for d, n in zip(docs, counts):
        assert d.chunk_count == n == eng.index.count_by_document(d.id)
    assert eng.stats().document_count == 16


def test_stats_and_activity(engine):
    st = engine.stats()
    assert st.document_count == 2
    assert st.chunk_count == len(engine.index)
    assert st.total_chars == sum(len(d.content) for d in engine.documents())

    engine.answer(QUESTION)
    entries = engine.activity.entries()
    assert "Local context synthesized (Match: 50%)." in entries[0]
    assert f'Query Received: "{QUESTION}"' in entries[1]
    assert any('Resource added: "NLP Course Policy" (1 segments).' in e for e in entries)


def test_removal_during_answer_leaves_no_stale_cache_entry(engine, monkeypatch):
    original = engine.retriever.retrieve

    def retrieve_then_remove(*args, **kwargs):
        hits = original(*args, **kwargs)
        engine.remove_document("doc-2")
        return hits

    monkeypatch.setattr(engine.retriever, "retrieve", retrieve_then_remove)
    during = engine.answer(QUESTION)
    assert any(s.doc_id == "doc-2" for s in during.sources)

    monkeypatch.setattr(engine.retriever, "retrieve", original)
    after = engine.answer(QUESTION)
    assert engine.index.count_by_document("doc-2") == 0
    assert all(s.doc_id != "doc-2" for s in after.sources)
    assert after.answer == FALLBACK_ANSWER
    assert len(engine.cache) == 1


def test_ingest_during_answer_does_not_cache_stale_fallback(monkeypatch):
    eng = Engine()
    original = eng.retriever.retrieve

    def retrieve_then_ingest(*args, **kwargs):
        hits = original(*args, **kwargs)
        eng.ingest(Document(id="lib", title="Library", content="Library hours are 8am to 10pm."))
        return hits

    monkeypatch.setattr(eng.retriever, "retrieve", retrieve_then_ingest)
    assert eng.answer("library hours").answer == FALLBACK_ANSWER

    monkeypatch.setattr(eng.retriever, "retrieve", original)
    res = eng.answer("library hours")
    assert res.confidence == 1.0
    assert "8am" in res.answer


def test_answer_quotes_matching_sentence_beyond_short_snippet():
    cfg = EngineConfig.model_validate(
        {"ingest": {"chunk_chars": 1000, "overlap_chars": 50}, "retrieval": {"snippet_chars": 100}}
    )
    eng = Engine(cfg)
    content = (
        "Students should read the handbook carefully before the term begins "
        "and ask their advisor about anything unclear. " * 2
        + "Attendance of 75% is mandatory."
    )
    eng.ingest(Document(id="p", title="Policy", content=content))
    res = eng.answer(QUESTION)
    assert res.confidence == 0.5
    assert len(res.sources[0].snippet) <= 100
    assert "attendance" not in res.sources[0].snippet.lower()
    assert res.answer == 'According to "Policy": Attendance of 75% is mandatory.'


def test_second_ingest_of_blank_document_is_rejected():
    eng = Engine()
    eng.ingest(Document(id="blank", title="Blank", content=""))
    with pytest.raises(DuplicateChunkIdError):
        eng.ingest(Document(id="blank", title="Other", content="  "))
    assert [d.title for d in eng.documents()] == ["Blank"]
    # the explicit path still works
    assert eng.reingest(Document(id="blank", title="Filled", content="Now it has text.")) == 1
