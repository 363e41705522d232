"""matter_rag.common.schemas

Core data schemas shared across the segmentation and retrieval pipeline.

These lightweight dataclasses describe the canonical shapes for uploaded
source documents, the passages they are split into, and the per-document text
blocks rebuilt from those passages. They are passed between ingestion,
storage, retrieval, and generation components.

Classes
-------
Document
    An uploaded source document belonging to a matter.
Passage
    A bounded, independently retrievable chunk of a document's text.
DocumentText
    A document's type tag together with its reassembled text.

Notes
-----
``document_name`` and ``doc_type`` are denormalised onto every
:class:`Passage` so that passages can be grouped without a join against the
owning document.
"""

from dataclasses import dataclass, field
from typing import Any, Dict
from uuid import uuid4

DEFAULT_DOC_TYPE = "Other"


@dataclass
class Document:
    """Container for an uploaded source document.

    Attributes
    ----------
    matter_id : str
        Identifier of the owning matter.
    name : str
        Display name of the document (typically the uploaded file name).
    doc_type : str
        Free-form classification used for filtering (e.g., ``"Pleading"``,
        ``"Case Law"``). Defaults to ``"Other"``.
    char_count : int
        Number of characters in the normalised extracted text.
    chunk_count : int
        Number of passages persisted for the document. Set once chunking and
        storage complete.
    id : str
        Unique identifier for the document. Defaults to a random UUID4 string.
    metadata : Dict[str, Any]
        Arbitrary metadata associated with the document. Defaults to an empty dict.
    """
    matter_id: str
    name: str
    doc_type: str = DEFAULT_DOC_TYPE
    char_count: int = 0
    chunk_count: int = 0
    id: str = field(default_factory=lambda: str(uuid4()))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.doc_type:
            self.doc_type = DEFAULT_DOC_TYPE


@dataclass(frozen=True)
class Passage:
    """A stored chunk of a :class:`~matter_rag.common.schemas.Document`.

    Attributes
    ----------
    matter_id : str
        Identifier of the owning matter.
    document_id : str
        Identifier of the owning document.
    document_name : str
        Display name of the owning document.
    doc_type : str
        Type tag of the owning document.
    chunk_index : int
        Zero-based sequence index, gapless within its document.
    content : str
        Passage text.
    document_char_count : int
        Character count of the owning document's normalised text, carried on
        every passage so document summaries can be rebuilt from the store.
    id : str
        Store-level identifier. Defaults to a random UUID4 string, so repeated
        ingestion of the same document appends rather than overwrites.
    """
    matter_id: str
    document_id: str
    document_name: str
    doc_type: str
    chunk_index: int
    content: str
    document_char_count: int = 0
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class DocumentText:
    """Reassembled text of one document.

    Attributes
    ----------
    doc_type : str
        Type tag of the document.
    text : str
        Passage contents joined in sequence order.
    """
    doc_type: str
    text: str
