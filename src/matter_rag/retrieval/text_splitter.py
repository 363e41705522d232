"""matter_rag.retrieval.text_splitter

Text splitting and chunking utilities for the retrieval layer.

This module turns normalised document text into bounded, overlapping
passages in two passes:
- a paragraph chunker that greedily packs whole paragraphs into chunks of a
  nominal size, carrying the tail of each emitted chunk into the next one
- an oversized-chunk splitter that cuts any chunk longer than 1.5x the
  nominal size (a single paragraph larger than the nominal size) into
  fixed-width overlapping windows

Fragments not longer than the configured minimum are dropped by both passes.

Classes
-------
ParagraphChunker
    Greedy paragraph packer with overlap carry-over and an oversize pass.

Functions
---------
segment
    Normalise and split text into chunk strings.
build_passages
    Attach document identity and sequence indices to chunk strings.
"""

import logging
import re
from typing import List, Sequence

from matter_rag.common import Document, Passage
from matter_rag.config.settings import ChunkingConfig
from matter_rag.retrieval.document_preprocessor import normalise_text

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines, discarding empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def _tail(text: str, n_chars: int) -> str:
    """Return the last ``n_chars`` characters of ``text``."""
    if not text or n_chars <= 0:
        return ""
    return text[-n_chars:]


class ParagraphChunker:
    """Chunk normalised text at paragraph granularity.

    Paragraphs are appended to an accumulator until the next one would push
    it past ``chunk_size``. The accumulator is then emitted and reseeded with
    the last ``overlap`` characters of the emitted chunk, a paragraph
    separator, and the paragraph that did not fit. Every chunk after the first
    therefore starts with the exact tail of its predecessor.

    Parameters
    ----------
    config : ChunkingConfig
        Nominal size, overlap and minimum fragment length.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    def _reseed(self, emitted: str, paragraph: str) -> str:
        carried = _tail(emitted, self.config.overlap)
        if not carried:
            return paragraph
        return carried + PARAGRAPH_SEPARATOR + paragraph

    def pack(self, text: str) -> list[str]:
        """Greedily pack paragraphs into chunks.

        Parameters
        ----------
        text : str
            Normalised text.

        Returns
        -------
        list[str]
            Chunk candidates in document order. Chunks may still exceed the
            nominal size when a single paragraph does.

        Notes
        -----
        Paragraphs are stripped, so chunks never carry trailing whitespace.
        Leading whitespace is only ever part of a carried overlap and is kept
        verbatim.
        """
        chunks: List[str] = []
        current = ""

        for paragraph in split_paragraphs(text):
            if current and len(current) + len(paragraph) > self.config.chunk_size:
                emitted = current.rstrip()
                chunks.append(emitted)
                current = self._reseed(emitted, paragraph)
            else:
                current = current + PARAGRAPH_SEPARATOR + paragraph if current else paragraph

        if len(current.strip()) > self.config.min_fragment:
            chunks.append(current.rstrip())

        return chunks

    def split_oversized(self, chunks: Sequence[str]) -> list[str]:
        """Force-split chunks longer than the size ceiling and drop small fragments.

        Parameters
        ----------
        chunks : Sequence[str]
            Output of :meth:`pack`.

        Returns
        -------
        list[str]
            Chunks no longer than ``1.5 * chunk_size`` and longer than
            ``min_fragment``. An oversized chunk becomes windows of exactly
            ``chunk_size`` characters (the last may be shorter) whose starts
            advance by ``chunk_size - overlap``.
        """
        size = self.config.chunk_size
        step = size - self.config.overlap
        ceiling = self.config.chunk_size * 1.5

        out: List[str] = []
        for chunk in chunks:
            if len(chunk) <= ceiling:
                out.append(chunk)
                continue
            windows = [chunk[start:start + size] for start in range(0, len(chunk), step)]
            logger.debug("Split oversized chunk of %d chars into %d windows", len(chunk), len(windows))
            out.extend(windows)

        return [c for c in out if len(c) > self.config.min_fragment]

    def chunk(self, text: str) -> list[str]:
        """Run both passes over normalised text."""
        return self.split_oversized(self.pack(text))


def segment(text: str, config: ChunkingConfig | None = None) -> list[str]:
    """Normalise and split raw text into passage strings.

    Parameters
    ----------
    text : str
        Raw extracted document text.
    config : ChunkingConfig or None, optional
        Segmentation parameters. Defaults to :class:`ChunkingConfig` defaults.

    Returns
    -------
    list[str]
        Ordered passage texts. Empty when the text is too short to produce a
        fragment longer than ``config.min_fragment``.
    """
    config = config or ChunkingConfig()
    return ParagraphChunker(config).chunk(normalise_text(text))


def build_passages(document: Document, chunks: Sequence[str]) -> list[Passage]:
    """Wrap chunk strings as :class:`~matter_rag.common.schemas.Passage` rows.

    Parameters
    ----------
    document : Document
        Owning document; its identity, name and type are copied onto each row.
    chunks : Sequence[str]
        Chunk texts in document order.

    Returns
    -------
    list[Passage]
        One passage per chunk with gapless zero-based ``chunk_index`` values.
    """
    return [
        Passage(
            matter_id=document.matter_id,
            document_id=document.id,
            document_name=document.name,
            doc_type=document.doc_type,
            chunk_index=index,
            content=text,
            document_char_count=document.char_count,
        )
        for index, text in enumerate(chunks)
    ]


__all__ = [
    "PARAGRAPH_SEPARATOR",
    "ParagraphChunker",
    "split_paragraphs",
    "segment",
    "build_passages",
]
