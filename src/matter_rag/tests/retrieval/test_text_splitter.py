import pytest

from matter_rag.common import Document
from matter_rag.config.settings import ChunkingConfig
from matter_rag.retrieval.document_preprocessor import normalise_text
from matter_rag.retrieval.text_splitter import (
    PARAGRAPH_SEPARATOR,
    ParagraphChunker,
    build_passages,
    segment,
    split_paragraphs,
)


def _paragraphs(count: int, words: int = 30) -> str:
    """
    Build ``count`` distinct paragraphs of roughly ``words`` words each,
    separated by blank lines.
    """
    return "\n\n".join(
        f"{i + 1}. " + " ".join(f"term{i}_{j}" for j in range(words)) for i in range(count)
    )


def test_split_paragraphs_discards_empty_blocks():
    assert split_paragraphs("a\n\n\n  \n\nb\n \nc") == ["a", "b", "c"]


def test_three_paragraphs_pack_with_overlap():
    """
    Paragraphs of 500, 900 and 400 characters with a nominal size of 1200 and
    an overlap of 150 give three chunks, each after the first reseeded with
    the last 150 characters of its predecessor.
    """
    text = "\n\n".join(["a" * 500, "b" * 900, "c" * 400])
    chunks = segment(text, ChunkingConfig(chunk_size=1200, overlap=150))

    assert [len(c) for c in chunks] == [500, 1052, 552]
    assert chunks[0] == "a" * 500
    assert chunks[1] == "a" * 150 + "\n\n" + "b" * 900
    assert chunks[2] == "b" * 150 + "\n\n" + "c" * 400


def test_single_oversized_paragraph_is_windowed():
    text = "x" * 3000
    chunks = segment(text, ChunkingConfig(chunk_size=1200, overlap=150))

    assert [len(c) for c in chunks] == [1200, 1200, 900]
    assert chunks[1] == text[1050:2250]
    assert chunks[2] == text[2100:]


def test_short_text_yields_nothing():
    assert segment("Too short to keep.") == []
    assert segment("") == []


def test_trailing_fragment_not_longer_than_minimum_is_dropped():
    config = ChunkingConfig(chunk_size=100, overlap=10, min_fragment=50)
    chunker = ParagraphChunker(config)

    # 90 + 50 overflows; the reseeded tail (10 + 2 + 38) is exactly 50 chars.
    chunks = chunker.chunk("p" * 90 + "\n\n" + "q" * 38)
    assert chunks == ["p" * 90]


def test_window_fragment_not_longer_than_minimum_is_dropped():
    config = ChunkingConfig(chunk_size=100, overlap=0, min_fragment=50)
    chunks = ParagraphChunker(config).chunk("z" * 230)

    # windows of 100, 100 and 30; the last is dropped
    assert [len(c) for c in chunks] == [100, 100]


@pytest.mark.parametrize("chunk_size, overlap", [(1200, 150), (400, 60), (250, 0)])
def test_length_bounds_hold(chunk_size, overlap):
    config = ChunkingConfig(chunk_size=chunk_size, overlap=overlap)
    text = _paragraphs(40) + "\n\n" + "y" * (chunk_size * 3)

    chunks = segment(text, config)

    assert chunks
    for chunk in chunks:
        assert config.min_fragment < len(chunk) <= chunk_size * 1.5


def test_each_packed_chunk_starts_with_tail_of_previous():
    config = ChunkingConfig(chunk_size=600, overlap=80)
    chunker = ParagraphChunker(config)

    chunks = chunker.pack(normalise_text(_paragraphs(25)))

    assert len(chunks) > 3
    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.startswith(prev[-80:] + PARAGRAPH_SEPARATOR)


def test_zero_overlap_round_trips_to_normalised_text():
    """
    With no overlap and no oversized paragraph, joining the chunks with a
    blank line reproduces the normalised input exactly.
    """
    raw = _paragraphs(30).replace("\n\n", "\n \t\n\n\n")
    config = ChunkingConfig(chunk_size=500, overlap=0)

    chunks = segment(raw, config)

    assert len(chunks) > 1
    assert PARAGRAPH_SEPARATOR.join(chunks) == normalise_text(raw)


@pytest.mark.parametrize("chunk_size, overlap", [(600, 80), (1200, 150), (400, 1)])
def test_dropping_overlap_prefixes_round_trips_to_normalised_text(chunk_size, overlap):
    """
    Every chunk after the first opens with ``overlap`` characters repeated
    from its predecessor; cutting them off and concatenating restores the
    normalised input.
    """
    raw = _paragraphs(30).replace("\n\n", "  \r\n\r\n")
    config = ChunkingConfig(chunk_size=chunk_size, overlap=overlap)

    chunks = segment(raw, config)

    assert len(chunks) > 1
    assert chunks[0] + "".join(c[overlap:] for c in chunks[1:]) == normalise_text(raw)


def test_segment_is_deterministic():
    text = _paragraphs(20)
    assert segment(text) == segment(text)


def test_build_passages_indexes_are_gapless():
    document = Document(matter_id="m1", name="Witness Statement.pdf", doc_type="Witness Statement")
    passages = build_passages(document, ["one", "two", "three"])

    assert [p.chunk_index for p in passages] == [0, 1, 2]
    assert {p.document_id for p in passages} == {document.id}
    assert {p.document_name for p in passages} == {"Witness Statement.pdf"}
    assert {p.doc_type for p in passages} == {"Witness Statement"}
    assert len({p.id for p in passages}) == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"chunk_size": 0},
        {"chunk_size": 100, "overlap": 100},
        {"overlap": -1},
        {"min_fragment": -1},
        {"insert_batch_size": 0},
    ],
)
def test_invalid_chunking_config_rejected(kwargs):
    with pytest.raises(ValueError):
        ChunkingConfig(**kwargs)
