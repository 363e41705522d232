"""matter_rag.app.container

Composition root for the matter system.

This module is the single place where concrete implementations are wired
together from configuration (chat model, passage store, retriever, ingestion,
analysis and tool pipelines). Components are constructed lazily and cached on
first access.

Notes
-----
- Keep this module importable with minimal side effects:
  - do not perform network calls at import time
  - do not read files at import time
  - construct expensive objects lazily (cached on first access)

Examples
--------
>>> from matter_rag.config import GlobalConfig
>>> from matter_rag.app.container import build_container
>>> cfg = GlobalConfig.load("config.yaml")
>>> c = build_container(cfg)
>>> c.ingestor.ingest("matter-1", "Defence.txt", text, doc_type="Pleading")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Mapping, Optional

from matter_rag.app.access import AccessPolicy, allow_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatterRAGContainer:
    """Holds the configured, cached runtime components for the application.

    Parameters
    ----------
    config : Any
        Loaded global configuration object (typically :class:`matter_rag.config.GlobalConfig`).
    access_policy : AccessPolicy, optional
        Matter access check used by the HTTP layer. Defaults to allowing all.
    llm : Any, optional
        Pre-built chat model. When given, ``generator_llm`` is not read from
        configuration.
    """

    config: Any
    access_policy: AccessPolicy = allow_all
    llm: Optional[Any] = None

    @cached_property
    def generator_llm(self) -> Any:
        """Return the chat model used for analysis and tools."""
        if self.llm is not None:
            return self.llm

        from matter_rag.generation.llm_interface import create_llm

        section = _as_mapping(self.config.generator_llm)
        return create_llm(dict(section))

    @cached_property
    def prompt_builder(self) -> Any:
        """Return the prompt builder loaded from ``config.prompts``.

        Relative prompt file paths are resolved against the config file
        directory when it is known.
        """
        from matter_rag.generation.prompt_builder import PromptBuilder

        prompts = self.config.prompts
        if isinstance(prompts, str):
            sources = [prompts]
        elif isinstance(prompts, (list, tuple)):
            sources = [str(p) for p in prompts]
        else:
            raise TypeError(f"config.prompts must be a str or list[str], got {type(prompts)!r}")

        cfg_path = getattr(self.config, "config_path", None)
        base_dir = cfg_path.parent if cfg_path is not None else None
        return PromptBuilder.from_sources(sources, base_dir=base_dir)

    @cached_property
    def persist_path(self):
        """Return the resolved passage store persist path, or ``None``."""
        section = _as_mapping(self.config.passage_store)
        path = section.get("persist_path")
        if not path:
            return None
        return self.config.resolve_path(path)

    @cached_property
    def passage_store(self) -> Any:
        """Return the passage store, loading persisted passages when configured."""
        from matter_rag.retrieval.passage_store import create_passage_store

        section = _as_mapping(self.config.passage_store)
        store = create_passage_store(section.get("type", "simple"), persist_path=self.persist_path)
        logger.info("Passage store ready (type=%s, persist_path=%s)", section.get("type", "simple"), self.persist_path)
        return store

    @cached_property
    def retriever(self) -> Any:
        """Return the fallback retriever over the passage store."""
        from matter_rag.retrieval.retriever_factory import create

        return create(store=self.passage_store, config=self.config.retrieval)

    @cached_property
    def ingestor(self) -> Any:
        from matter_rag.pipelines.ingestion_pipeline import DocumentIngestor

        return DocumentIngestor(self.passage_store, self.config.chunking)

    @cached_property
    def analysis_pipeline(self) -> Any:
        from matter_rag.pipelines.analysis_pipeline import MatterAnalysisPipeline

        return MatterAnalysisPipeline(
            retriever=self.retriever,
            prompt_builder=self.prompt_builder,
            llm=self.generator_llm,
            jurisdiction=self.config.jurisdiction,
        )

    @cached_property
    def tool_runner(self) -> Any:
        from matter_rag.pipelines.matter_tools import MatterToolRunner

        return MatterToolRunner(
            store=self.passage_store,
            prompt_builder=self.prompt_builder,
            llm=self.generator_llm,
            config=self.config.retrieval,
            jurisdiction=self.config.jurisdiction,
        )

    def persist(self) -> bool:
        """Persist the passage store if a persist path is configured.

        Returns
        -------
        bool
            ``True`` if the store was written.
        """
        if self.persist_path is None:
            return False
        self.passage_store.persist(self.persist_path)
        return True


def build_container(
        config: Any,
        access_policy: AccessPolicy = allow_all,
        llm: Optional[Any] = None,
    ) -> MatterRAGContainer:
    """Create a :class:`~matter_rag.app.container.MatterRAGContainer`.

    Single entry point for the FastAPI startup hook, CLI scripts and tests.
    """
    return MatterRAGContainer(config=config, access_policy=access_policy, llm=llm)


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    """Coerce an object into a mapping.

    Raises
    ------
    TypeError
        If ``obj`` cannot be interpreted as a mapping.
    """
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return obj
    if hasattr(obj, "__dict__"):
        return dict(vars(obj))
    raise TypeError(f"Expected mapping type but got {type(obj)}")


__all__ = ["MatterRAGContainer", "build_container"]
