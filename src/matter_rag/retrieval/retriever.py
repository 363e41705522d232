"""matter_rag.retrieval.retriever

Passage retrieval for grounding generated analysis.

Retrieval is an ordered list of strategies tried until one returns passages.
The default chain runs a ranked lexical search over the matter and falls back
to an unranked sample, so a matter with any ingested content never grounds a
response on nothing. Search backend failures are logged and treated as an
empty result.

Classes
-------
RankedSearch
    Keyword expression + ranked lexical search strategy.
FallbackRetriever
    Tries strategies in order until one yields a non-empty result.

Functions
---------
unranked_sample
    Up to ``limit`` passages of the matter in store order.
retrieve
    Run the default chain for a single query.
fetch_all_grouped
    Reassemble every passage of a matter (optionally type-filtered) per document.
"""

from __future__ import annotations

import logging
from typing import Collection, Dict, Optional, Sequence

from matter_rag.common import DocumentText, Passage, SearchBackendError
from matter_rag.config.settings import RetrievalConfig
from matter_rag.retrieval.keywords import extract_search_expression
from matter_rag.retrieval.reassembler import reassemble
from matter_rag.retrieval.types import PassageStore, RetrievalStrategy

logger = logging.getLogger(__name__)


class RankedSearch:
    """Ranked lexical search strategy.

    Derives a search expression from the query and runs the store's ranked
    search. Returns an empty list without touching the store when the query
    has no usable keywords.

    Parameters
    ----------
    config : RetrievalConfig or None, optional
        Keyword extraction bounds.
    """

    def __init__(self, config: RetrievalConfig | None = None):
        self.config = config or RetrievalConfig()

    def __call__(self, store: PassageStore, matter_id: str, query: str, limit: int) -> list[Passage]:
        expression = extract_search_expression(query, self.config)
        if expression is None:
            logger.debug("No usable keywords in query; skipping ranked search")
            return []
        logger.debug("Ranked search in matter %s: %r", matter_id, expression)
        return store.search(matter_id, expression, limit)


def unranked_sample(store: PassageStore, matter_id: str, query: str, limit: int) -> list[Passage]:
    """Return up to ``limit`` passages of the matter in store-defined order."""
    return store.fetch(matter_id, limit=limit)


class FallbackRetriever:
    """Retrieve passages through an ordered chain of strategies.

    Parameters
    ----------
    store : PassageStore
        Store the strategies read from.
    strategies : Sequence[RetrievalStrategy] or None, optional
        Strategies tried in order. Defaults to ``[RankedSearch, unranked_sample]``.
    config : RetrievalConfig or None, optional
        Default limit and keyword bounds.

    Notes
    -----
    The strategies are independent reads; nothing is locked between them.
    """

    def __init__(
            self,
            store: PassageStore,
            strategies: Optional[Sequence[RetrievalStrategy]] = None,
            config: RetrievalConfig | None = None,
        ):
        self.store = store
        self.config = config or RetrievalConfig()
        self.strategies = list(strategies) if strategies is not None else [
            RankedSearch(self.config),
            unranked_sample,
        ]

    def retrieve(self, matter_id: str, query: str, limit: Optional[int] = None) -> list[Passage]:
        """Return passages for ``query`` from the first strategy with results.

        Parameters
        ----------
        matter_id : str
            Matter to search.
        query : str
            Free-text user question.
        limit : int or None, optional
            Maximum number of passages. Defaults to ``config.search_limit``
            when ``None``; ``0`` returns an empty list.

        Returns
        -------
        list[Passage]
            Ranked passages, an unranked sample, or an empty list when the
            matter has no passages at all.
        """
        if limit is None:
            limit = self.config.search_limit
        if limit < 0:
            raise ValueError(f"'limit' must be non-negative, got {limit}.")
        if limit == 0:
            return []
        for strategy in self.strategies:
            name = getattr(strategy, "__name__", type(strategy).__name__)
            try:
                rows = strategy(self.store, matter_id, query, limit)
            except SearchBackendError as exc:
                logger.warning("Strategy %s failed for matter %s, falling back: %s", name, matter_id, exc)
                continue
            if rows:
                logger.debug("Strategy %s returned %d passages", name, len(rows))
                return rows
            logger.debug("Strategy %s returned nothing for matter %s", name, matter_id)
        return []

    def __call__(self, matter_id: str, query: str, limit: Optional[int] = None) -> list[Passage]:
        return self.retrieve(matter_id, query, limit)


def retrieve(
        store: PassageStore,
        matter_id: str,
        query: str,
        limit: Optional[int] = None,
        config: RetrievalConfig | None = None,
    ) -> list[Passage]:
    """Run the default ranked-then-sample chain. See :class:`FallbackRetriever`."""
    return FallbackRetriever(store, config=config).retrieve(matter_id, query, limit)


def fetch_all_grouped(
        store: PassageStore,
        matter_id: str,
        doc_types: Optional[Collection[str]] = None,
        config: RetrievalConfig | None = None,
    ) -> Dict[str, DocumentText]:
    """Reassemble a whole matter into per-document text.

    Parameters
    ----------
    store : PassageStore
        Store to read from.
    matter_id : str
        Matter to reassemble.
    doc_types : Collection[str] or None, optional
        Restrict to documents with these type tags.
    config : RetrievalConfig or None, optional
        ``context_limit`` caps the number of passages read.

    Returns
    -------
    dict[str, DocumentText]
        Documents ordered by name, each with its passages in sequence order.
    """
    config = config or RetrievalConfig()
    rows = store.fetch(matter_id, doc_types=doc_types, limit=config.context_limit, ordered=True)
    return reassemble(rows, doc_types=doc_types)


__all__ = [
    "RankedSearch",
    "FallbackRetriever",
    "unranked_sample",
    "retrieve",
    "fetch_all_grouped",
]
