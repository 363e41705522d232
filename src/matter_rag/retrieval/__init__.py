"""
Segmentation and retrieval layer of the matter pipeline.

This package covers everything needed to turn extracted document text into
stored passages and to fetch passages back for a question or for a whole
matter. Retrieval is lexical: ranked BM25 search over a matter's passages with
an unranked fallback, no embeddings.

Submodules
----------
document_preprocessor
    Whitespace normalisation applied prior to chunking.
text_splitter
    Paragraph-packing chunker with overlap and the oversized-chunk splitter.
keywords
    Query keyword extraction into a disjunctive search expression.
passage_store
    LlamaIndex docstore-backed passage store with BM25 search.
retriever
    Ordered fallback chain of retrieval strategies, whole-matter fetch.
retriever_factory
    Registry assembling a fallback chain from strategy names.
reassembler
    Per-document reassembly of passages.
types
    ``PassageStore`` protocol and ``RetrievalStrategy`` alias.

Re-exports
----------
normalise_text, segment, ParagraphChunker
    Segmentation entry points.
SimplePassageStore, create_passage_store
    Default store backend.
FallbackRetriever, retrieve, fetch_all_grouped
    Retrieval entry points.
reassemble
    Grouping of passages into document text.
"""
from .document_preprocessor import normalise_text
from .text_splitter import ParagraphChunker, build_passages, segment
from .keywords import extract_keywords, extract_search_expression
from .passage_store import SimplePassageStore, create_passage_store
from .reassembler import reassemble
from .retriever import FallbackRetriever, RankedSearch, fetch_all_grouped, retrieve, unranked_sample
from .types import PassageStore, RetrievalStrategy

__all__ = [
    "normalise_text",
    "ParagraphChunker",
    "build_passages",
    "segment",
    "extract_keywords",
    "extract_search_expression",
    "SimplePassageStore",
    "create_passage_store",
    "reassemble",
    "FallbackRetriever",
    "RankedSearch",
    "fetch_all_grouped",
    "retrieve",
    "unranked_sample",
    "PassageStore",
    "RetrievalStrategy",
]
