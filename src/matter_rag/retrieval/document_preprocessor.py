"""matter_rag.retrieval.document_preprocessor

Text normalisation applied to extracted document text prior to chunking.

Text pulled out of PDFs and word-processor files carries extraction
artefacts: mixed line endings, runs of spaces and tabs used for layout, and
long stretches of blank lines between pages. The helpers here canonicalise
that text so vertical whitespace is bounded and paragraphs carry single
spaces within them.

Functions
---------
normalise_text
    Canonicalise line endings, horizontal whitespace and blank-line runs.
"""

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" ?\n ?")
_EXCESS_NEWLINES = re.compile(r"\n{4,}")


def normalise_text(text: str) -> str:
    """Canonicalise raw extracted text.

    The following rules are applied in order:
    - ``\\r\\n`` and bare ``\\r`` become ``\\n``
    - runs of horizontal whitespace (spaces, tabs, form feeds, non-breaking
      spaces) become a single space
    - a space directly before or after a line break is dropped, so
      whitespace-only lines count as blank
    - runs of more than three newlines become exactly two; a run of three is
      kept as is
    - leading and trailing whitespace is removed

    Parameters
    ----------
    text : str
        Raw extracted text. ``None`` is treated as an empty string.

    Returns
    -------
    str
        Normalised text. Only whitespace is ever removed.
    """
    if not text:
        return ""

    text = _LINE_ENDINGS.sub("\n", text)
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


__all__ = ["normalise_text"]
