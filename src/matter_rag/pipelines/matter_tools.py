"""matter_rag.pipelines.matter_tools

Whole-matter litigation tools.

Unlike conversational analysis, each tool reads every passage of the matter
(up to ``context_limit``), reassembles it per document and sends it to the
model with a tool-specific template. Tools are registered by name in the
same plugin style as retrieval strategies.

Classes
-------
ToolRequest
    Parameters of a single tool invocation.
MatterToolRunner
    Assemble context for a named tool and run it.

Functions
---------
register_tool
    Decorator registering the context builder for a tool name.
available_tools
    Names of the registered tools.
format_documents
    Render reassembled documents as ``=== name [type] ===`` blocks.
partition_anchors
    Split reassembled documents into anchor and other documents.
format_long_date
    Render a date as ``"19 October 2026"``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Collection, Dict, Mapping, Optional, Sequence, Tuple

from matter_rag.common import DocumentText, InputError, UnknownToolError
from matter_rag.config.global_config import DEFAULT_JURISDICTION
from matter_rag.config.settings import RetrievalConfig
from matter_rag.generation.llm_interface import BaseLLM
from matter_rag.generation.prompt_builder import PromptBuilder
from matter_rag.retrieval.retriever import fetch_all_grouped
from matter_rag.retrieval.types import PassageStore

logger = logging.getLogger(__name__)

SKELETON_TYPES = ("Skeleton Argument", "Pleading")
CASE_LAW_TYPES = ("Case Law",)
DEFAULT_MATTER_NAME = "Current Matter"


@dataclass
class ToolRequest:
    """Parameters of one tool invocation.

    Attributes
    ----------
    matter_id : str
        Matter whose documents are read.
    matter_name : str
        Display name substituted into prompts.
    jurisdiction : str
        Governing jurisdiction.
    matter_nature, matter_issues : str or None
        Optional free-text context lines.
    instructions : str or None
        Tool-specific user instructions (the proposition for ``proposition``,
        the drafting brief for ``draft``, a focus for the others).
    anchor_doc_names : list[str]
        Documents treated as anchors by ``inconsistency``.
    """
    matter_id: str
    matter_name: str = DEFAULT_MATTER_NAME
    jurisdiction: str = DEFAULT_JURISDICTION
    matter_nature: Optional[str] = None
    matter_issues: Optional[str] = None
    instructions: Optional[str] = None
    anchor_doc_names: list[str] = field(default_factory=list)

    @property
    def matter_context(self) -> str:
        lines = []
        if self.matter_nature:
            lines.append(f"Nature of the dispute: {self.matter_nature}")
        if self.matter_issues:
            lines.append(f"Key issues: {self.matter_issues}")
        return "\n".join(lines)


ContextBuilder = Callable[["MatterToolRunner", ToolRequest], Dict[str, str]]

_TOOLS: Dict[str, ContextBuilder] = {}


def register_tool(name: str):
    """Register the context builder for a tool.

    The builder receives the runner and the request and returns the
    template variables specific to the tool. The template rendered is
    ``"tool.<name>"``.
    """
    def _wrap(fn: ContextBuilder) -> ContextBuilder:
        _TOOLS[name] = fn
        return fn
    return _wrap


def available_tools() -> list[str]:
    return sorted(_TOOLS)


def format_documents(
        documents: Mapping[str, DocumentText],
        *,
        with_type: bool = True,
        prefix: str = "",
    ) -> str:
    """Render documents as delimited blocks.

    Examples
    --------
    >>> format_documents({"Claim": DocumentText("Pleading", "text")})
    '=== Claim [Pleading] ===\\ntext'
    """
    blocks = []
    for name, doc in documents.items():
        header = f"=== {prefix}{name} [{doc.doc_type}] ===" if with_type else f"=== {prefix}{name} ==="
        blocks.append(f"{header}\n{doc.text}")
    return "\n\n".join(blocks)


def partition_anchors(
        documents: Mapping[str, DocumentText],
        anchor_names: Optional[Collection[str]] = None,
    ) -> Tuple[Dict[str, DocumentText], Dict[str, DocumentText], bool]:
    """Split documents into anchors and the rest.

    Documents named in ``anchor_names`` are anchors. If none of the names
    match, the first ``ceil(n / 2)`` documents (in reassembly order) become
    the anchors instead.

    Returns
    -------
    tuple
        ``(anchors, others, explicit)``; ``explicit`` is ``False`` when the
        half-split default was used.
    """
    wanted = set(anchor_names or ())
    anchors = {n: d for n, d in documents.items() if n in wanted}
    if anchors:
        others = {n: d for n, d in documents.items() if n not in wanted}
        return anchors, others, True

    items = list(documents.items())
    cut = math.ceil(len(items) / 2)
    return dict(items[:cut]), dict(items[cut:]), False


def format_long_date(value: date) -> str:
    """Render ``value`` as day, full month name and year, e.g. ``"5 March 2026"``."""
    return f"{value.day} {value:%B %Y}"


class MatterToolRunner:
    """Run whole-matter tools.

    Parameters
    ----------
    store : PassageStore
        Store the matter's passages are read from.
    prompt_builder : PromptBuilder
        Builder holding the ``tool.*`` templates.
    llm : BaseLLM
        Chat model used for generation.
    config : RetrievalConfig or None, optional
        ``context_limit`` caps the passages read per call.
    jurisdiction : str, optional
        Jurisdiction used when a request does not name one.
    today : Callable[[], date], optional
        Clock for the briefing date.
    llm_generate_defaults : dict or None, optional
        Default keyword arguments forwarded to ``llm.generate``.
    """

    def __init__(
            self,
            store: PassageStore,
            prompt_builder: PromptBuilder,
            llm: BaseLLM,
            config: RetrievalConfig | None = None,
            jurisdiction: str = DEFAULT_JURISDICTION,
            today: Callable[[], date] = date.today,
            llm_generate_defaults: dict | None = None,
        ):
        self.store = store
        self.prompt_builder = prompt_builder
        self.llm = llm
        self.config = config or RetrievalConfig()
        self.jurisdiction = jurisdiction
        self.today = today
        self.llm_generate_defaults = llm_generate_defaults or {"max_tokens": 8192}

    def documents(self, matter_id: str, doc_types: Optional[Sequence[str]] = None) -> Dict[str, DocumentText]:
        return fetch_all_grouped(self.store, matter_id, doc_types=doc_types, config=self.config)

    def run(
            self,
            tool: str,
            matter_id: str,
            matter_name: Optional[str] = None,
            jurisdiction: Optional[str] = None,
            matter_nature: Optional[str] = None,
            matter_issues: Optional[str] = None,
            instructions: Optional[str] = None,
            anchor_doc_names: Optional[Sequence[str]] = None,
            **llm_kwargs,
        ) -> str:
        """Run ``tool`` over the documents of ``matter_id``.

        Returns
        -------
        str
            Generated text.

        Raises
        ------
        UnknownToolError
            If ``tool`` is not registered.
        InputError
            If a required input is missing (the proposition for ``proposition``).
        """
        builder = _TOOLS.get(tool)
        if builder is None:
            raise UnknownToolError(f"Unknown tool: {tool}")

        request = ToolRequest(
            matter_id=matter_id,
            matter_name=matter_name or DEFAULT_MATTER_NAME,
            jurisdiction=jurisdiction or self.jurisdiction,
            matter_nature=matter_nature,
            matter_issues=matter_issues,
            instructions=instructions,
            anchor_doc_names=list(anchor_doc_names or []),
        )
        variables = builder(self, request)

        prompt = self.prompt_builder.build(
            f"tool.{tool}",
            jurisdiction=request.jurisdiction,
            matter_name=request.matter_name,
            matter_context=request.matter_context,
            instructions=request.instructions or "",
            **variables,
        )
        logger.info("Running tool %s for matter %s", tool, matter_id)
        return self.llm.generate(prompt.user, system=prompt.system, **{**self.llm_generate_defaults, **llm_kwargs})


def _all_documents(runner: MatterToolRunner, request: ToolRequest) -> Dict[str, str]:
    return {"documents": format_documents(runner.documents(request.matter_id))}


@register_tool("proposition")
def _proposition(runner: MatterToolRunner, request: ToolRequest) -> Dict[str, str]:
    if not request.instructions:
        raise InputError("Please state the proposition to test")
    return _all_documents(runner, request)


@register_tool("inconsistency")
def _inconsistency(runner: MatterToolRunner, request: ToolRequest) -> Dict[str, str]:
    anchors, others, explicit = partition_anchors(
        runner.documents(request.matter_id), request.anchor_doc_names
    )
    if not explicit:
        logger.debug("No anchor documents matched; using first %d documents as anchors", len(anchors))
    return {
        "anchor_text": format_documents(anchors, prefix="ANCHOR: " if explicit else ""),
        "other_text": format_documents(others),
    }


register_tool("chronology")(_all_documents)
register_tool("persons")(_all_documents)
register_tool("issues")(_all_documents)
register_tool("draft")(_all_documents)


@register_tool("citations")
def _citations(runner: MatterToolRunner, request: ToolRequest) -> Dict[str, str]:
    return {
        "skeleton_text": format_documents(
            runner.documents(request.matter_id, SKELETON_TYPES), with_type=False
        ),
        "caselaw_text": format_documents(
            runner.documents(request.matter_id, CASE_LAW_TYPES), with_type=False
        ),
    }


@register_tool("briefing")
def _briefing(runner: MatterToolRunner, request: ToolRequest) -> Dict[str, str]:
    variables = _all_documents(runner, request)
    variables["date"] = format_long_date(runner.today())
    return variables


__all__ = [
    "ToolRequest",
    "MatterToolRunner",
    "register_tool",
    "available_tools",
    "format_documents",
    "partition_anchors",
    "format_long_date",
    "SKELETON_TYPES",
    "CASE_LAW_TYPES",
]
