"""matter_rag.retrieval.keywords

Derive a bounded lexical search expression from a free-text question.

Functions
---------
extract_search_expression
    Build an ``a | b | c`` expression, or ``None`` if nothing usable remains.
"""

from __future__ import annotations

from typing import Optional

from matter_rag.config.settings import RetrievalConfig
from matter_rag.retrieval.passage_store import OR_OPERATOR


def extract_keywords(query: str, config: RetrievalConfig | None = None) -> list[str]:
    """Return the whitespace tokens of ``query`` kept for search.

    Tokens must be strictly longer than ``config.min_keyword_length``
    characters; at most ``config.max_keywords`` are kept, in query order.
    Punctuation is left attached.
    """
    config = config or RetrievalConfig()
    tokens = [t for t in (query or "").split() if len(t) > config.min_keyword_length]
    return tokens[: config.max_keywords]


def extract_search_expression(query: str, config: RetrievalConfig | None = None) -> Optional[str]:
    """Build a disjunctive search expression from ``query``.

    Parameters
    ----------
    query : str
        Free-text user question.
    config : RetrievalConfig or None, optional
        Keyword bounds. Defaults to :class:`RetrievalConfig` defaults.

    Returns
    -------
    str or None
        Kept tokens joined with ``" | "``, or ``None`` when no token survives
        filtering. Callers must go straight to the unranked path on ``None``.

    Examples
    --------
    >>> extract_search_expression("What happened on the closing date?")
    'What | happened | closing | date?'
    >>> extract_search_expression("why so?") is None
    True
    """
    keywords = extract_keywords(query, config)
    if not keywords:
        return None
    return f" {OR_OPERATOR} ".join(keywords)


__all__ = ["extract_keywords", "extract_search_expression"]
