"""matter_rag.retrieval.types

Shared type definitions for the retrieval layer.

This module defines lightweight protocol and type abstractions used to
decouple the ingestion and retrieval code from concrete storage backends.

Classes
-------
PassageStore
    Protocol defining the ordered passage store consumed by the pipeline.

Attributes
----------
RetrievalStrategy : TypeAlias
    Callable ``(store, matter_id, query, limit) -> list[Passage]`` tried in
    order by the fallback chain.
"""

from __future__ import annotations

from typing import Callable, Collection, Optional, Protocol, Sequence, TypeAlias

from matter_rag.common import Document, Passage


class PassageStore(Protocol):
    """Protocol defining the passage store interface.

    A passage store persists passages in insertion order and supports
    matter-scoped reads, a ranked plain-text search over passage content, and
    cascading deletes.

    Methods
    -------
    insert
        Append passages in order.
    fetch
        Filtered and limited read for a matter.
    search
        Ranked lexical search for a matter.
    """

    def insert(self, passages: Sequence[Passage]) -> int:
        """Append ``passages`` in order and return how many were written."""
        ...

    def fetch(
            self,
            matter_id: str,
            *,
            doc_types: Optional[Collection[str]] = None,
            limit: Optional[int] = None,
            ordered: bool = False,
        ) -> list[Passage]:
        """Return passages of a matter.

        Parameters
        ----------
        matter_id : str
            Matter to read from.
        doc_types : Collection[str] or None, optional
            Restrict to passages whose ``doc_type`` is in this set. An empty
        collection matches nothing; ``None`` applies no filter.
        limit : int or None, optional
            Maximum number of passages returned.
        ordered : bool, optional
            When ``True`` sort by ``(document_name, chunk_index)`` before
            applying ``limit``; otherwise store order is used.
        """
        ...

    def fetch_document(self, document_id: str) -> list[Passage]:
        """Return a document's passages in ``chunk_index`` order."""
        ...

    def search(self, matter_id: str, expression: str, limit: int) -> list[Passage]:
        """Return passages matching an ``a | b | c`` expression, best first.

        Raises
        ------
        SearchBackendError
            If the search backend fails.
        """
        ...

    def delete_document(self, document_id: str) -> int:
        """Remove all passages of a document and return how many were removed."""
        ...

    def delete_matter(self, matter_id: str) -> int:
        """Remove all passages of a matter and return how many were removed."""
        ...

    def list_documents(self, matter_id: str) -> list[Document]:
        """Summarise the documents that have passages in a matter."""
        ...


RetrievalStrategy: TypeAlias = Callable[[PassageStore, str, str, int], list[Passage]]
