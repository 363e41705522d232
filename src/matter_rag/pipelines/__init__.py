"""matter_rag.pipelines

Pipeline orchestration for the matter system.

Pipelines coordinate segmentation, retrieval, prompt construction and
generation. They hold no per-request state beyond their configured
components, so one instance can serve many requests.

Modules
-------
ingestion_pipeline
    Normalise, segment and persist uploaded document text.
analysis_pipeline
    Conversational analysis grounded on retrieved passages.
matter_tools
    Whole-matter litigation tools (chronology, inconsistencies, ...).
"""

from .ingestion_pipeline import DocumentIngestor, IngestionResult, ingest_document
from .analysis_pipeline import MatterAnalysisPipeline
from .matter_tools import MatterToolRunner, available_tools

__all__ = [
    "DocumentIngestor",
    "IngestionResult",
    "ingest_document",
    "MatterAnalysisPipeline",
    "MatterToolRunner",
    "available_tools",
]
