import pytest

from matter_rag.common import DEFAULT_DOC_TYPE, InputError, StoreWriteError
from matter_rag.config.settings import ChunkingConfig
from matter_rag.pipelines.ingestion_pipeline import DocumentIngestor, ingest_document
from matter_rag.retrieval.passage_store import SimplePassageStore
from matter_rag.retrieval.text_splitter import ParagraphChunker


class RecordingStore:
    """
    Store double that records insert batches and can fail on a given call.
    """

    def __init__(self, fail_on_call=None):
        self.batches = []
        self.fail_on_call = fail_on_call

    def insert(self, passages):
        if self.fail_on_call is not None and len(self.batches) + 1 == self.fail_on_call:
            raise ConnectionError("store unavailable")
        self.batches.append(list(passages))
        return len(passages)


def _paragraphs(count=5, width=80):
    return "\n\n".join(chr(ord("a") + i) * width for i in range(count))


def test_ingest_document_writes_ordered_batches():
    store = RecordingStore()
    chunks = [f"chunk {i} " + "x" * 60 for i in range(5)]

    persisted = ingest_document(store, "m1", "d1", "Claim", "Pleading", chunks, batch_size=2)

    assert persisted == 5
    assert [len(b) for b in store.batches] == [2, 2, 1]
    rows = [p for batch in store.batches for p in batch]
    assert [p.chunk_index for p in rows] == [0, 1, 2, 3, 4]
    assert [p.content for p in rows] == chunks
    assert {p.document_id for p in rows} == {"d1"}


def test_ingest_document_failure_reports_persisted_count():
    store = RecordingStore(fail_on_call=2)
    chunks = ["y" * 60] * 5

    with pytest.raises(StoreWriteError) as info:
        ingest_document(store, "m1", "d1", "Claim", None, chunks, batch_size=2)

    assert info.value.persisted == 2
    assert isinstance(info.value.__cause__, ConnectionError)
    assert [len(b) for b in store.batches] == [2]


def test_ingest_document_defaults_doc_type():
    store = RecordingStore()
    ingest_document(store, "m1", "d1", "Note", "", ["z" * 60], batch_size=10)
    assert store.batches[0][0].doc_type == DEFAULT_DOC_TYPE


def test_ingestor_persists_chunks_and_counts():
    config = ChunkingConfig(chunk_size=100, overlap=10, min_fragment=20, insert_batch_size=2)
    store = SimplePassageStore()
    text = _paragraphs()

    result = DocumentIngestor(store, config).ingest("m1", "Affidavit", text, doc_type="Witness Statement")

    expected = ParagraphChunker(config).chunk(text)
    assert result.chunks_persisted == len(expected)
    assert result.document.chunk_count == len(expected)
    assert result.document.char_count == len(text)
    assert result.document.doc_type == "Witness Statement"
    stored = store.fetch_document(result.document.id)
    assert [p.content for p in stored] == expected


def test_ingestor_uses_explicit_document_id_and_default_type():
    store = SimplePassageStore()
    result = DocumentIngestor(store).ingest("m1", "Letter", "word " * 40, document_id="doc-42")

    assert result.document.id == "doc-42"
    assert result.document.doc_type == DEFAULT_DOC_TYPE
    assert len(store.fetch_document("doc-42")) == 1


@pytest.mark.parametrize("text", ["", "   \n\n  ", "too short to be useful"])
def test_ingestor_rejects_short_text_without_writing(text):
    store = SimplePassageStore()

    with pytest.raises(InputError, match="OCR"):
        DocumentIngestor(store).ingest("m1", "Scan.pdf", text)

    assert store.fetch("m1") == []


class FlakyPassageStore(SimplePassageStore):
    """
    Real passage store whose ``fail_on_call``-th insert raises.
    """

    def __init__(self, fail_on_call):
        super().__init__()
        self.fail_on_call = fail_on_call
        self.insert_calls = 0

    def insert(self, passages):
        self.insert_calls += 1
        if self.insert_calls == self.fail_on_call:
            raise ConnectionError("store unavailable")
        return super().insert(passages)


def test_failed_ingestion_leaves_no_partial_document():
    config = ChunkingConfig(chunk_size=100, overlap=10, min_fragment=20, insert_batch_size=2)
    store = FlakyPassageStore(fail_on_call=2)

    with pytest.raises(StoreWriteError) as info:
        DocumentIngestor(store, config).ingest("m1", "Claim", _paragraphs(), doc_type="Pleading")

    assert info.value.persisted == 2
    assert isinstance(info.value.__cause__, ConnectionError)
    assert store.list_documents("m1") == []
    assert store.fetch("m1") == []


def test_failed_ingestion_keeps_other_documents():
    config = ChunkingConfig(chunk_size=100, overlap=10, min_fragment=20, insert_batch_size=2)
    store = FlakyPassageStore(fail_on_call=4)
    ingestor = DocumentIngestor(store, config)
    kept = ingestor.ingest("m1", "Defence", _paragraphs(count=3))

    with pytest.raises(StoreWriteError):
        ingestor.ingest("m1", "Claim", _paragraphs())

    assert [d.id for d in store.list_documents("m1")] == [kept.document.id]


def test_listed_char_count_matches_ingested_document():
    """
    Overlapping passages repeat text, so the listed size must be the
    document's own count rather than a sum over passages.
    """
    config = ChunkingConfig(chunk_size=300, overlap=60, min_fragment=20)
    store = SimplePassageStore()
    text = _paragraphs(count=20, width=120)

    result = DocumentIngestor(store, config).ingest("m1", "Witness Statement", text)

    [listed] = store.list_documents("m1")
    assert result.chunks_persisted > 1
    assert listed.id == result.document.id
    assert listed.char_count == result.document.char_count == len(text)
    assert listed.chunk_count == result.chunks_persisted
