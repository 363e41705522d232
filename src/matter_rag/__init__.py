"""matter_rag

Legal matter document segmentation and retrieval package.

This package turns extracted text of legal documents into overlapping
passages, stores them per matter, and retrieves them either by ranked lexical
search or by reassembling a whole matter, to ground generated legal analysis.

Attributes
----------
__version__ : str
    Package version string. Defaults to ``"0.0.0-dev"`` when package metadata is
    unavailable.

Modules
-------
config
    Global configuration loader and parameter dataclasses.
app
    Application container and HTTP API.
pipelines
    Ingestion, analysis and whole-matter tool pipelines.
retrieval
    Normalisation, chunking, passage store, retrieval and reassembly.
generation
    Chat model and prompt-building interfaces.
common
    Shared schemas and exceptions.

Exports
-------
GlobalConfig
    Global configuration loader and accessor.
MatterRAGContainer
    Cached runtime component container for applications.
build_container
    Factory function to construct a configured :class:`~matter_rag.app.container.MatterRAGContainer`.
Document, Passage, DocumentText
    Core schemas.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("matter-rag")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from .config import GlobalConfig
from .app.container import MatterRAGContainer, build_container
from .common import Document, DocumentText, Passage

__all__ = [
    "__version__",
    "GlobalConfig",
    "MatterRAGContainer",
    "build_container",
    "Document",
    "DocumentText",
    "Passage",
]
