"""
Common building blocks shared across the pipeline.

This package provides small, widely-used primitives (document and passage
schemas, ID aliases, and the exception hierarchy) intended to be imported by
multiple layers of the system.

Classes
-------
Document
    An uploaded source document.
Passage
    A stored chunk of a document with its denormalised document fields.
DocumentText
    Reassembled text of one document.

Attributes
----------
MatterId : TypeAlias
    Type alias for matter identifiers.
DocId : TypeAlias
    Type alias for document identifiers.

See Also
--------
matter_rag.common.schemas
    Defines the dataclasses above.
matter_rag.common.exceptions
    Defines :class:`~matter_rag.common.exceptions.MatterRAGError` and subclasses.
"""
from __future__ import annotations
from typing import TypeAlias

from .schemas import (
    DEFAULT_DOC_TYPE,
    Document,
    DocumentText,
    Passage,
)
from .exceptions import (
    InputError,
    MatterRAGError,
    SearchBackendError,
    StoreWriteError,
    UnknownToolError,
)

MatterId: TypeAlias = str
DocId: TypeAlias = str

__all__ = [
    "DEFAULT_DOC_TYPE",
    "Document",
    "DocumentText",
    "Passage",
    "MatterId",
    "DocId",
    "MatterRAGError",
    "InputError",
    "StoreWriteError",
    "SearchBackendError",
    "UnknownToolError",
]
