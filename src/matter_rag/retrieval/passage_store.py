"""matter_rag.retrieval.passage_store

Passage store backed by a LlamaIndex document store.

Passages are stored as :class:`llama_index.core.schema.TextNode` objects in a
:class:`llama_index.core.storage.docstore.SimpleDocumentStore`, with matter,
document and sequence fields kept in node metadata. Ranked lexical search is
delegated to LlamaIndex's BM25 retriever, built over the candidate passages of
a single matter.

Classes
-------
SimplePassageStore
    In-process passage store with optional JSON persistence.

Functions
---------
create_passage_store
    Create a passage store by backend kind.
parse_or_expression
    Split an ``a | b | c`` search expression into its terms.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Collection, Dict, Iterable, List, Optional, Sequence

from llama_index.core.schema import TextNode
from llama_index.core.storage.docstore import SimpleDocumentStore
from llama_index.retrievers.bm25 import BM25Retriever

from matter_rag.common import Document, Passage, SearchBackendError

logger = logging.getLogger(__name__)

OR_OPERATOR = "|"

_METADATA_KEYS = (
    "matter_id",
    "document_id",
    "document_name",
    "doc_type",
    "chunk_index",
    "document_char_count",
)


def parse_or_expression(expression: str) -> list[str]:
    """Split a disjunctive search expression into non-empty terms."""
    return [t.strip() for t in (expression or "").split(OR_OPERATOR) if t.strip()]


def _to_node(passage: Passage) -> TextNode:
    """Convert a passage into a TextNode whose metadata is hidden from search."""
    metadata = {
        "matter_id": passage.matter_id,
        "document_id": passage.document_id,
        "document_name": passage.document_name,
        "doc_type": passage.doc_type,
        "chunk_index": passage.chunk_index,
        "document_char_count": passage.document_char_count,
    }
    return TextNode(
        text=passage.content,
        id_=passage.id,
        metadata=metadata,
        excluded_embed_metadata_keys=list(_METADATA_KEYS),
        excluded_llm_metadata_keys=list(_METADATA_KEYS),
    )


def _from_node(node: Any) -> Passage:
    metadata = node.metadata
    return Passage(
        matter_id=metadata["matter_id"],
        document_id=metadata["document_id"],
        document_name=metadata["document_name"],
        doc_type=metadata["doc_type"],
        chunk_index=int(metadata["chunk_index"]),
        content=node.get_content(),
        document_char_count=int(metadata.get("document_char_count", 0)),
        id=node.node_id,
    )


class SimplePassageStore:
    """Passage store over a LlamaIndex document store.

    Reads scan the whole document store and filter on metadata, which keeps
    the backend dependency-free at the cost of linear-time queries.

    Parameters
    ----------
    docstore : SimpleDocumentStore or None, optional
        Existing document store to wrap. A new empty one is created if omitted.
    persist_path : str or Path or None, optional
        Default JSON path used by :meth:`persist`.
    """

    def __init__(
            self,
            docstore: Optional[SimpleDocumentStore] = None,
            persist_path: str | Path | None = None,
        ):
        self._docstore = docstore if docstore is not None else SimpleDocumentStore()
        self.persist_path = Path(persist_path) if persist_path else None

    @classmethod
    def load(cls, persist_path: str | Path) -> "SimplePassageStore":
        """Load a store persisted with :meth:`persist`.

        A missing file yields an empty store bound to ``persist_path``.
        """
        path = Path(persist_path)
        if not path.exists():
            logger.info("No passage store at %s; starting empty", path)
            return cls(persist_path=path)
        return cls(SimpleDocumentStore.from_persist_path(str(path)), persist_path=path)

    def persist(self, persist_path: str | Path | None = None) -> None:
        """Write the store to a JSON file.

        Raises
        ------
        ValueError
            If no path is given and the store has no default ``persist_path``.
        """
        path = Path(persist_path) if persist_path else self.persist_path
        if path is None:
            raise ValueError("No persist_path configured for passage store.")
        path.parent.mkdir(parents=True, exist_ok=True)
        self._docstore.persist(persist_path=str(path))

    def _passages(self) -> Iterable[Passage]:
        for node in self._docstore.docs.values():
            yield _from_node(node)

    def insert(self, passages: Sequence[Passage]) -> int:
        nodes = [_to_node(p) for p in passages]
        self._docstore.add_documents(nodes, allow_update=False)
        return len(nodes)

    def fetch(
            self,
            matter_id: str,
            *,
            doc_types: Optional[Collection[str]] = None,
            limit: Optional[int] = None,
            ordered: bool = False,
        ) -> list[Passage]:
        allowed = set(doc_types) if doc_types is not None else None
        rows = [
            p for p in self._passages()
            if p.matter_id == matter_id and (allowed is None or p.doc_type in allowed)
        ]
        if ordered:
            rows.sort(key=lambda p: (p.document_name, p.chunk_index))
        if limit is not None:
            rows = rows[:limit]
        return rows

    def fetch_document(self, document_id: str) -> list[Passage]:
        """Return a document's passages in sequence order."""
        rows = [p for p in self._passages() if p.document_id == document_id]
        return sorted(rows, key=lambda p: p.chunk_index)

    def search(self, matter_id: str, expression: str, limit: int) -> list[Passage]:
        """Rank a matter's passages against a disjunctive expression with BM25.

        Only passages sharing at least one term with the expression (a
        positive BM25 score) are returned.

        Raises
        ------
        SearchBackendError
            If building the BM25 index or querying it fails.
        """
        candidates = self.fetch(matter_id)
        terms = parse_or_expression(expression)
        if limit <= 0 or not candidates or not terms:
            return []

        by_id = {p.id: p for p in candidates}
        try:
            retriever = BM25Retriever.from_defaults(
                nodes=[_to_node(p) for p in candidates],
                similarity_top_k=min(limit, len(candidates)),
            )
            hits = retriever.retrieve(" ".join(terms))
        except Exception as exc:
            raise SearchBackendError(
                f"BM25 search failed for matter {matter_id!r}: {type(exc).__name__}: {exc}"
            ) from exc

        return [
            by_id[hit.node.node_id]
            for hit in hits
            if hit.node.node_id in by_id and (hit.score or 0.0) > 0.0
        ]

    def _delete_where(self, predicate) -> int:
        doomed = [p.id for p in self._passages() if predicate(p)]
        for node_id in doomed:
            self._docstore.delete_document(node_id, raise_error=False)
        return len(doomed)

    def delete_document(self, document_id: str) -> int:
        return self._delete_where(lambda p: p.document_id == document_id)

    def delete_matter(self, matter_id: str) -> int:
        return self._delete_where(lambda p: p.matter_id == matter_id)

    def list_documents(self, matter_id: str) -> list[Document]:
        """Summarise a matter's documents, ordered by name.

        ``char_count`` is the document-level count recorded at ingestion, not
        a sum over passages, which would count overlaps twice.
        """
        docs: Dict[str, Document] = {}
        for p in self._passages():
            if p.matter_id != matter_id:
                continue
            doc = docs.get(p.document_id)
            if doc is None:
                doc = docs[p.document_id] = Document(
                    matter_id=matter_id,
                    name=p.document_name,
                    doc_type=p.doc_type,
                    char_count=p.document_char_count,
                    id=p.document_id,
                )
            doc.chunk_count += 1
        return sorted(docs.values(), key=lambda d: d.name)


def create_passage_store(
        kind: str = "simple",
        *,
        persist_path: str | Path | None = None,
        **kwargs: Any,
    ) -> SimplePassageStore:
    """Create a passage store by backend kind.

    Parameters
    ----------
    kind : {"simple"}, optional
        Store backend to use. ``"simple"`` keeps passages in a LlamaIndex
        :class:`SimpleDocumentStore`. Defaults to ``"simple"``.
    persist_path : str or Path or None, optional
        JSON file to load from (when it exists) and persist to.
    **kwargs : Any
        Backend-specific keyword arguments (currently unused).

    Returns
    -------
    SimplePassageStore
        Instantiated passage store.

    Raises
    ------
    ValueError
        If ``kind`` does not correspond to a supported backend.
    """
    k = (kind or "simple").lower()
    if k == "simple":
        if persist_path:
            return SimplePassageStore.load(persist_path)
        return SimplePassageStore()

    raise ValueError(f"Unknown passage store kind: {kind!r}. Use 'simple'.")


__all__ = [
    "OR_OPERATOR",
    "SimplePassageStore",
    "create_passage_store",
    "parse_or_expression",
]
