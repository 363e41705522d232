"""matter_rag.retrieval.retriever_factory

Factory and registry for retrieval strategies.

This module provides a lightweight plugin-style registry for the strategies
a :class:`~matter_rag.retrieval.retriever.FallbackRetriever` tries in order.
Strategy builders are registered under a string key and the chain is
assembled from a list of names, so new ranking strategies can be added
without touching call sites.

Functions
---------
register
    Decorator used to register a strategy builder under a name.
create
    Construct a fallback retriever from strategy names.
"""
from __future__ import annotations
from typing import Callable, Dict, Optional, Sequence

from matter_rag.config.settings import RetrievalConfig
from matter_rag.retrieval.retriever import FallbackRetriever, RankedSearch, unranked_sample
from matter_rag.retrieval.types import PassageStore, RetrievalStrategy

DEFAULT_STRATEGIES = ("ranked", "sample")

_BUILDERS: Dict[str, Callable[[RetrievalConfig], RetrievalStrategy]] = {}


def register(name: str):
    """Register a strategy builder under a name.

    The builder receives the active :class:`RetrievalConfig` and returns a
    strategy callable.

    Parameters
    ----------
    name : str
        Name under which the builder should be registered.

    Returns
    -------
    Callable
        Decorator that registers the wrapped builder function.
    """
    def _wrap(fn: Callable[[RetrievalConfig], RetrievalStrategy]):
        _BUILDERS[name] = fn
        return fn
    return _wrap


def create(
    *,
    store: PassageStore,
    strategies: Optional[Sequence[str]] = None,
    config: Optional[RetrievalConfig] = None,
) -> FallbackRetriever:
    """Create a fallback retriever from registered strategy names.

    Parameters
    ----------
    store : PassageStore
        Store the strategies read from.
    strategies : Sequence[str] or None, optional
        Strategy names in the order they are tried. Defaults to
        ``config.strategies``.
    config : RetrievalConfig or None, optional
        Retrieval parameters forwarded to builders and the retriever.

    Returns
    -------
    FallbackRetriever
        Configured retriever.

    Raises
    ------
    ValueError
        If a name does not correspond to a registered strategy, or the list
        is empty.
    """
    config = config or RetrievalConfig()
    names = list(strategies or config.strategies or DEFAULT_STRATEGIES)
    if not names:
        raise ValueError("At least one retrieval strategy is required.")

    unknown = [n for n in names if n not in _BUILDERS]
    if unknown:
        raise ValueError(f"Unknown retrieval strategies: {unknown}. Available: {sorted(_BUILDERS)}")

    return FallbackRetriever(
        store,
        strategies=[_BUILDERS[n](config) for n in names],
        config=config,
    )


@register("ranked")
def _build_ranked(config: RetrievalConfig) -> RetrievalStrategy:
    return RankedSearch(config)


@register("sample")
def _build_sample(config: RetrievalConfig) -> RetrievalStrategy:
    return unranked_sample
