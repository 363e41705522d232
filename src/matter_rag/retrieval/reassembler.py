"""matter_rag.retrieval.reassembler

Rebuild per-document text from an ordered set of passages.

Functions
---------
group_by
    Keyed accumulation over an ordered sequence, preserving first-encounter order.
reassemble
    Group passages by document name and join each group in sequence order.
"""

from __future__ import annotations

from typing import Callable, Collection, Dict, Hashable, Iterable, List, Optional, TypeVar

from matter_rag.common import DocumentText, Passage
from matter_rag.retrieval.text_splitter import PARAGRAPH_SEPARATOR

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, List[T]]:
    """Group ``items`` by ``key``.

    Groups appear in the order their key is first encountered; items keep
    their input order within a group.
    """
    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def reassemble(
        passages: Iterable[Passage],
        doc_types: Optional[Collection[str]] = None,
    ) -> Dict[str, DocumentText]:
    """Reassemble passages into one text block per document.

    Parameters
    ----------
    passages : Iterable[Passage]
        Passages from a search, a sample, or a full-matter fetch.
    doc_types : Collection[str] or None, optional
        If not ``None``, passages whose ``doc_type`` is not in this set are
        ignored. An empty collection therefore yields an empty mapping.

    Returns
    -------
    dict[str, DocumentText]
        Mapping of document name to its type tag and the contents of its
        passages joined with a blank line in ascending ``chunk_index`` order.
        Keys follow first-encounter order, not alphabetical order.
    """
    allowed = set(doc_types) if doc_types is not None else None
    selected = (p for p in passages if allowed is None or p.doc_type in allowed)

    out: Dict[str, DocumentText] = {}
    for name, group in group_by(selected, key=lambda p: p.document_name).items():
        ordered = sorted(group, key=lambda p: p.chunk_index)
        out[name] = DocumentText(
            doc_type=ordered[0].doc_type,
            text=PARAGRAPH_SEPARATOR.join(p.content for p in ordered),
        )
    return out


__all__ = ["group_by", "reassemble"]
