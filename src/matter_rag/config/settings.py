"""matter_rag.config.settings

Explicit parameter structures for the segmentation and retrieval pipeline.

Every pipeline call takes one of these frozen dataclasses instead of reading
ambient defaults, so tests can vary chunk sizes and limits freely.

Classes
-------
ChunkingConfig
    Nominal chunk size, overlap, minimum fragment length and insert batch size.
RetrievalConfig
    Result limits and keyword-extraction bounds.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class ChunkingConfig:
    """Parameters controlling document segmentation.

    Attributes
    ----------
    chunk_size : int
        Nominal chunk size in characters. Chunks longer than
        ``1.5 * chunk_size`` are force-split into windows of this width.
    overlap : int
        Number of trailing characters of one chunk repeated at the start of
        the next. Must satisfy ``0 <= overlap < chunk_size``.
    min_fragment : int
        Fragments whose length is not strictly greater than this are dropped.
    insert_batch_size : int
        Number of passages written to the store per insert call.
    """
    chunk_size: int = 1200
    overlap: int = 150
    min_fragment: int = 50
    insert_batch_size: int = 50

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"'chunk_size' must be positive, got {self.chunk_size}.")
        if not 0 <= self.overlap < self.chunk_size:
            raise ValueError(
                f"'overlap' must satisfy 0 <= overlap < chunk_size, got {self.overlap} "
                f"with chunk_size={self.chunk_size}."
            )
        if self.min_fragment < 0:
            raise ValueError(f"'min_fragment' must be non-negative, got {self.min_fragment}.")
        if self.insert_batch_size <= 0:
            raise ValueError(
                f"'insert_batch_size' must be positive, got {self.insert_batch_size}."
            )

    @property
    def max_chunk_length(self) -> int:
        """Upper bound on stored passage length."""
        return int(self.chunk_size * 1.5)

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any] | None) -> "ChunkingConfig":
        """Build from a configuration section, ignoring unknown keys."""
        return cls(**_known_keys(cls, section))


@dataclass(frozen=True)
class RetrievalConfig:
    """Parameters controlling passage retrieval.

    Attributes
    ----------
    search_limit : int
        Maximum number of passages returned by the fallback chain.
    context_limit : int or None
        Maximum number of passages fetched when reassembling a whole matter.
        ``None`` fetches everything.
    max_keywords : int
        Maximum number of query tokens kept in a search expression.
    min_keyword_length : int
        Query tokens must be strictly longer than this to be kept.
    strategies : tuple[str, ...]
        Names of the retrieval strategies tried in order.
    """
    search_limit: int = 25
    context_limit: int | None = 200
    max_keywords: int = 10
    min_keyword_length: int = 3
    strategies: Tuple[str, ...] = ("ranked", "sample")

    def __post_init__(self):
        object.__setattr__(self, "strategies", tuple(self.strategies))
        if not self.strategies:
            raise ValueError("'strategies' must name at least one retrieval strategy.")
        if self.search_limit <= 0:
            raise ValueError(f"'search_limit' must be positive, got {self.search_limit}.")
        if self.context_limit is not None and self.context_limit <= 0:
            raise ValueError(
                f"'context_limit' must be positive or None, got {self.context_limit}."
            )
        if self.max_keywords <= 0:
            raise ValueError(f"'max_keywords' must be positive, got {self.max_keywords}.")

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any] | None) -> "RetrievalConfig":
        """Build from a configuration section, ignoring unknown keys."""
        return cls(**_known_keys(cls, section))


def _known_keys(cls, section: Mapping[str, Any] | None) -> dict[str, Any]:
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise TypeError(f"{cls.__name__} section must be a mapping, got {type(section)!r}.")
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in section.items() if k in names}


__all__ = ["ChunkingConfig", "RetrievalConfig"]
