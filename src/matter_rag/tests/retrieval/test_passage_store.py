import pytest

from matter_rag.common import Document, SearchBackendError
from matter_rag.retrieval.passage_store import (
    SimplePassageStore,
    create_passage_store,
    parse_or_expression,
)
from matter_rag.retrieval.text_splitter import build_passages


def _add(store, matter_id, name, contents, doc_type="Other"):
    document = Document(
        matter_id=matter_id,
        name=name,
        doc_type=doc_type,
        char_count=len("\n\n".join(contents)),
    )
    store.insert(build_passages(document, contents))
    return document


@pytest.fixture
def store():
    s = SimplePassageStore()
    _add(s, "m1", "Defence", ["The defence denies the indemnity claim.", "Costs are reserved."], "Pleading")
    _add(s, "m1", "Affidavit", ["The weather on the day was fine.", "The witness left early."], "Affidavit")
    _add(s, "m2", "Other Matter", ["Unrelated shipping dispute about indemnity."], "Pleading")
    return s


def test_parse_or_expression():
    assert parse_or_expression("alpha | beta |  | gamma ") == ["alpha", "beta", "gamma"]
    assert parse_or_expression("") == []


def test_fetch_is_scoped_to_matter(store):
    rows = store.fetch("m1")
    assert len(rows) == 4
    assert {p.matter_id for p in rows} == {"m1"}
    assert store.fetch("missing") == []


def test_fetch_ordered_by_document_name_then_index(store):
    rows = store.fetch("m1", ordered=True)
    assert [(p.document_name, p.chunk_index) for p in rows] == [
        ("Affidavit", 0),
        ("Affidavit", 1),
        ("Defence", 0),
        ("Defence", 1),
    ]


def test_fetch_limit_applies_after_ordering(store):
    rows = store.fetch("m1", ordered=True, limit=3)
    assert [(p.document_name, p.chunk_index) for p in rows] == [
        ("Affidavit", 0),
        ("Affidavit", 1),
        ("Defence", 0),
    ]


def test_fetch_filters_doc_types(store):
    rows = store.fetch("m1", doc_types=["Pleading"])
    assert {p.document_name for p in rows} == {"Defence"}


def test_search_ranks_passages_sharing_a_term(store):
    hits = store.search("m1", "indemnity | claim", limit=25)

    assert hits
    assert hits[0].content == "The defence denies the indemnity claim."
    assert all(p.matter_id == "m1" for p in hits)
    assert all("weather" not in p.content for p in hits)


def test_search_respects_limit(store):
    _add(store, "m1", "Reply", [f"Indemnity point number {i}." for i in range(5)], "Pleading")
    hits = store.search("m1", "indemnity", limit=2)
    assert len(hits) == 2


def test_search_empty_matter_or_expression(store):
    assert store.search("missing", "indemnity", limit=5) == []
    assert store.search("m1", " | ", limit=5) == []


def test_search_backend_failure_is_wrapped(store, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("index unavailable")

    monkeypatch.setattr("matter_rag.retrieval.passage_store.BM25Retriever.from_defaults", boom)
    with pytest.raises(SearchBackendError):
        store.search("m1", "indemnity", limit=5)


def test_delete_document_cascades(store):
    reply = _add(store, "m1", "Reply", ["Reply paragraph one.", "Reply paragraph two."])
    assert store.delete_document(reply.id) == 2
    assert store.fetch_document(reply.id) == []
    assert len(store.fetch("m1")) == 4


def test_delete_matter_leaves_other_matters(store):
    assert store.delete_matter("m1") == 4
    assert store.fetch("m1") == []
    assert len(store.fetch("m2")) == 1


def test_list_documents_counts_passages(store):
    docs = {d.name: d for d in store.list_documents("m1")}
    assert set(docs) == {"Defence", "Affidavit"}
    assert docs["Defence"].chunk_count == 2
    assert docs["Defence"].doc_type == "Pleading"
    assert docs["Defence"].char_count == len("The defence denies the indemnity claim.\n\nCosts are reserved.")


def test_reingestion_appends_duplicates(store):
    _add(store, "m2", "Other Matter", ["Unrelated shipping dispute about indemnity."], "Pleading")
    assert len(store.fetch("m2")) == 2


def test_persist_and_load_round_trip(store, tmp_path):
    path = tmp_path / "store" / "passages.json"
    store.persist(path)

    loaded = SimplePassageStore.load(path)
    original = sorted(store.fetch("m1"), key=lambda p: p.id)
    restored = sorted(loaded.fetch("m1"), key=lambda p: p.id)
    assert restored == original


def test_persist_without_path_raises():
    with pytest.raises(ValueError):
        SimplePassageStore().persist()


def test_create_passage_store(tmp_path):
    assert isinstance(create_passage_store("simple"), SimplePassageStore)

    missing = tmp_path / "nothing-yet.json"
    s = create_passage_store("simple", persist_path=missing)
    assert s.fetch("m1") == []
    assert s.persist_path == missing

    with pytest.raises(ValueError):
        create_passage_store("qdrant")


def test_empty_type_allow_set_matches_nothing(store):
    assert store.fetch("m1", doc_types=[]) == []
    assert len(store.fetch("m1", doc_types=None)) == 4


def test_search_with_zero_limit(store):
    assert store.search("m1", "indemnity", 0) == []
