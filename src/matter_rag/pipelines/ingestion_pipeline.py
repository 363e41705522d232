"""matter_rag.pipelines.ingestion_pipeline

Ingestion of extracted document text into the passage store.

Classes
-------
IngestionResult
    The created document and the number of passages persisted.
DocumentIngestor
    Normalise → segment → persist for one document at a time.

Functions
---------
ingest_document
    Write pre-segmented chunks for a document in ordered batches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from matter_rag.common import DEFAULT_DOC_TYPE, Document, InputError, StoreWriteError
from matter_rag.config.settings import ChunkingConfig
from matter_rag.retrieval.document_preprocessor import normalise_text
from matter_rag.retrieval.text_splitter import ParagraphChunker, build_passages
from matter_rag.retrieval.types import PassageStore

logger = logging.getLogger(__name__)

UNREADABLE_MESSAGE = (
    "Could not extract usable text: the document is too short or unreadable. "
    "Scanned PDFs must be OCR'd first."
)


@dataclass
class IngestionResult:
    """Outcome of ingesting one document.

    Attributes
    ----------
    document : Document
        The created document, with ``char_count`` and ``chunk_count`` set.
    chunks_persisted : int
        Number of passages written to the store.
    """
    document: Document
    chunks_persisted: int


def ingest_document(
        store: PassageStore,
        matter_id: str,
        document_id: str,
        document_name: str,
        doc_type: Optional[str],
        chunks: Sequence[str],
        batch_size: int = 50,
        char_count: int = 0,
    ) -> int:
    """Persist a document's chunks in order.

    Rows are written in consecutive batches of ``batch_size``; a batch is
    only sent once the previous one has been written. The call is not
    idempotent: repeating it appends duplicate passages.

    Parameters
    ----------
    store : PassageStore
        Destination store.
    matter_id, document_id, document_name : str
        Identity of the owning matter and document.
    doc_type : str or None
        Document type tag. ``None`` or empty becomes ``"Other"``.
    chunks : Sequence[str]
        Chunk texts in document order.
    batch_size : int, optional
        Rows per insert call. Defaults to ``50``.
    char_count : int, optional
        Length of the document's normalised text, recorded on every row.

    Returns
    -------
    int
        Number of passages persisted.

    Raises
    ------
    StoreWriteError
        If a batch fails. ``persisted`` holds the count written before the
        failing batch; the original exception is chained.
    """
    document = Document(
        matter_id=matter_id,
        name=document_name,
        doc_type=doc_type or DEFAULT_DOC_TYPE,
        char_count=char_count,
        id=document_id,
    )
    rows = build_passages(document, chunks)

    persisted = 0
    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        try:
            store.insert(batch)
        except Exception as exc:
            raise StoreWriteError(
                f"Failed writing passages {start}-{start + len(batch) - 1} of document "
                f"{document_id!r}: {exc}",
                persisted=persisted,
            ) from exc
        persisted += len(batch)
        logger.debug("Persisted %d/%d passages for document %s", persisted, len(rows), document_id)

    return persisted


class DocumentIngestor:
    """Turn extracted text into stored passages for one matter document.

    Parameters
    ----------
    store : PassageStore
        Destination store.
    config : ChunkingConfig or None, optional
        Segmentation parameters and insert batch size.
    """

    def __init__(self, store: PassageStore, config: ChunkingConfig | None = None):
        self.store = store
        self.config = config or ChunkingConfig()
        self.chunker = ParagraphChunker(self.config)

    def ingest(
            self,
            matter_id: str,
            document_name: str,
            text: str,
            doc_type: Optional[str] = None,
            document_id: Optional[str] = None,
        ) -> IngestionResult:
        """Normalise, segment and persist a document.

        Parameters
        ----------
        matter_id : str
            Owning matter.
        document_name : str
            Display name for the document.
        text : str
            Raw extracted text.
        doc_type : str or None, optional
            Document type tag. Defaults to ``"Other"``.
        document_id : str or None, optional
            Explicit document id. A UUID4 is generated when omitted.

        Returns
        -------
        IngestionResult
            The created document and number of passages persisted.

        Raises
        ------
        InputError
            If the text is shorter than ``min_fragment`` characters or yields
            no passages. Nothing is written in that case.
        StoreWriteError
            If persisting a batch fails. Passages already written for the
            document are removed before the error propagates, so a failed
            ingestion never leaves a partial document behind;
            ``persisted`` still reports how many had been written.
        """
        normalised = normalise_text(text)
        if len(normalised) < self.config.min_fragment:
            raise InputError(UNREADABLE_MESSAGE)

        chunks = self.chunker.chunk(normalised)
        if not chunks:
            raise InputError(UNREADABLE_MESSAGE)

        document = Document(
            matter_id=matter_id,
            name=document_name,
            doc_type=doc_type or DEFAULT_DOC_TYPE,
            char_count=len(normalised),
        )
        if document_id:
            document.id = document_id

        try:
            persisted = ingest_document(
                self.store,
                matter_id=matter_id,
                document_id=document.id,
                document_name=document.name,
                doc_type=document.doc_type,
                chunks=chunks,
                batch_size=self.config.insert_batch_size,
                char_count=document.char_count,
            )
        except StoreWriteError as exc:
            removed = self.store.delete_document(document.id)
            logger.warning(
                "Ingestion of %s into matter %s failed after %d passages; removed %d partial passages",
                document_name, matter_id, exc.persisted, removed,
            )
            raise
        document.chunk_count = persisted
        logger.info(
            "Ingested %s into matter %s: %d chars, %d passages",
            document_name, matter_id, document.char_count, persisted,
        )
        return IngestionResult(document=document, chunks_persisted=persisted)


__all__ = ["IngestionResult", "DocumentIngestor", "ingest_document", "UNREADABLE_MESSAGE"]
