"""matter_rag.common.exceptions

Exception hierarchy for the segmentation and retrieval pipeline.

Classes
-------
MatterRAGError
    Base class for all package errors.
InputError
    Extracted text is empty or too short to segment.
StoreWriteError
    A batch insert into the passage store failed part-way through ingestion.
SearchBackendError
    The ranked lexical search primitive failed.
UnknownToolError
    A matter tool was requested by an unregistered name.
"""

from __future__ import annotations


class MatterRAGError(Exception):
    """Base class for all matter_rag errors."""
    pass


class InputError(MatterRAGError):
    """Document text is missing, too short, or otherwise unusable."""
    pass


class StoreWriteError(MatterRAGError):
    """Passage insertion failed.

    Parameters
    ----------
    message : str
        Human-readable description of the failure.
    persisted : int
        Number of passages successfully written before the failure.
    """

    def __init__(self, message: str, persisted: int = 0):
        super().__init__(message)
        self.persisted = persisted


class SearchBackendError(MatterRAGError):
    """Ranked search failed. Absorbed by the retrieval fallback chain."""
    pass


class UnknownToolError(MatterRAGError):
    """No matter tool is registered under the requested name."""
    pass


__all__ = [
    "MatterRAGError",
    "InputError",
    "StoreWriteError",
    "SearchBackendError",
    "UnknownToolError",
]
