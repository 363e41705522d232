"""matter_rag.pipelines.analysis_pipeline

Conversational legal analysis grounded on retrieved matter passages.

Classes
-------
MatterAnalysisPipeline
    Retrieval → context block → system prompt → chat generation.

Functions
---------
message_text
    Flatten a message's content (string or list of typed parts) to text.
clean_messages
    Normalise a conversation to ``{"role", "content"}`` with string content.
format_passage_context
    Render retrieved passages grouped by document.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from matter_rag.common import InputError, Passage
from matter_rag.config.global_config import DEFAULT_JURISDICTION
from matter_rag.generation.llm_interface import BaseLLM
from matter_rag.generation.prompt_builder import PromptBuilder
from matter_rag.retrieval.reassembler import group_by
from matter_rag.retrieval.retriever import FallbackRetriever
from matter_rag.retrieval.text_splitter import PARAGRAPH_SEPARATOR

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "RELEVANT PASSAGES FROM MATTER DOCUMENTS:"
DEFAULT_MATTER_NAME = "Current Matter"
DEFAULT_QUERY_TYPE = "General Legal Analysis"
DEFAULT_FOCUS = "all relevant issues"


def message_text(content: Any) -> str:
    """Return the text of a message's content.

    String content is returned unchanged. A list of typed parts keeps only
    the ``"text"`` parts, joined with newlines. Anything else is stringified.

    Examples
    --------
    >>> message_text([{"type": "text", "text": "a"}, {"type": "image"}, {"type": "text", "text": "b"}])
    'a\\nb'
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            str(part.get("text", ""))
            for part in content
            if isinstance(part, Mapping) and part.get("type") == "text"
        )
    if content is None:
        return ""
    return str(content)


def clean_messages(messages: Sequence[Mapping[str, Any]]) -> list[dict[str, str]]:
    return [{"role": m.get("role", "user"), "content": message_text(m.get("content"))} for m in messages]


def format_passage_context(passages: Sequence[Passage]) -> str:
    """Render passages as a context block grouped by document.

    Documents appear in the order their first passage was retrieved and
    passages keep retrieval order within each document. Returns ``""`` when
    there are no passages.
    """
    if not passages:
        return ""
    blocks = [CONTEXT_HEADER]
    for name, group in group_by(passages, key=lambda p: p.document_name).items():
        body = PARAGRAPH_SEPARATOR.join(p.content for p in group)
        blocks.append(f"--- {name} [{group[0].doc_type}] ---\n{body}")
    return PARAGRAPH_SEPARATOR.join(blocks)


class MatterAnalysisPipeline:
    """Answer the latest turn of a conversation about a matter.

    The pipeline holds no per-request state and can be reused across
    requests.

    Parameters
    ----------
    retriever : FallbackRetriever
        Retrieves passages for the latest user message.
    prompt_builder : PromptBuilder
        Builder holding the ``analysis`` template.
    llm : BaseLLM
        Chat model used for generation.
    jurisdiction : str, optional
        Jurisdiction used when a request does not name one.
    prompt_name : str, optional
        Template name. Defaults to ``"analysis"``.
    llm_generate_defaults : dict or None, optional
        Default keyword arguments forwarded to ``llm.chat``.
    """

    def __init__(
            self,
            retriever: FallbackRetriever,
            prompt_builder: PromptBuilder,
            llm: BaseLLM,
            jurisdiction: str = DEFAULT_JURISDICTION,
            prompt_name: str = "analysis",
            llm_generate_defaults: dict | None = None,
        ):
        self.retriever = retriever
        self.prompt_builder = prompt_builder
        self.llm = llm
        self.jurisdiction = jurisdiction
        self.prompt_name = prompt_name
        self.llm_generate_defaults = llm_generate_defaults or {"max_tokens": 8192}

    def run(
            self,
            messages: Sequence[Mapping[str, Any]],
            matter_id: Optional[str] = None,
            matter_name: Optional[str] = None,
            jurisdiction: Optional[str] = None,
            query_type: Optional[str] = None,
            focus_areas: Optional[Sequence[str]] = None,
            **llm_kwargs,
        ) -> dict:
        """Generate an analysis for the latest message of ``messages``.

        Parameters
        ----------
        messages : Sequence[Mapping[str, Any]]
            Conversation so far; the last entry is the question.
        matter_id : str or None, optional
            Matter to ground on. Without one, no retrieval is performed.
        matter_name, jurisdiction, query_type : str or None, optional
            Values substituted into the system prompt.
        focus_areas : Sequence[str] or None, optional
            Focus areas listed in the system prompt.
        **llm_kwargs
            Per-call overrides for ``llm.chat``.

        Returns
        -------
        dict
            ``"response"`` (generated text), ``"system"`` (rendered system
            prompt) and ``"passages"`` (the passages used as context).

        Raises
        ------
        InputError
            If ``messages`` is empty.
        """
        if not messages:
            raise InputError("At least one message is required.")

        conversation = clean_messages(messages)
        query = conversation[-1]["content"]

        passages: list[Passage] = []
        if matter_id:
            passages = self.retriever.retrieve(matter_id, query)
            logger.info("Retrieved %d passages for analysis in matter %s", len(passages), matter_id)

        prompt = self.prompt_builder.build(
            self.prompt_name,
            jurisdiction=jurisdiction or self.jurisdiction,
            matter_name=matter_name or DEFAULT_MATTER_NAME,
            context=format_passage_context(passages),
            focus_areas=", ".join(focus_areas) if focus_areas else DEFAULT_FOCUS,
            query_type=query_type or DEFAULT_QUERY_TYPE,
        )

        gen_kwargs = {**self.llm_generate_defaults, **llm_kwargs}
        response = self.llm.chat(prompt.system, conversation, **gen_kwargs)
        return {"response": response, "system": prompt.system, "passages": passages}

    def __call__(self, messages: Sequence[Mapping[str, Any]], **kwargs) -> dict:
        return self.run(messages, **kwargs)


__all__ = [
    "MatterAnalysisPipeline",
    "message_text",
    "clean_messages",
    "format_passage_context",
    "CONTEXT_HEADER",
]
