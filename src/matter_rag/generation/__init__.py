"""matter_rag.generation

Chat model and prompt-template interfaces.

Modules
-------
llm_interface
    Provider-agnostic chat interface and ``create_llm`` factory.
prompt_builder
    Jinja2 prompt templates loaded from JSON; the bundled legal templates
    live in ``prompts/legal_prompts.json``.
"""

from .llm_interface import BaseLLM, OpenAIChatLikeLLM, create_llm
from .prompt_builder import PromptBuilder, PromptTemplate, RenderedPrompt

__all__ = [
    "BaseLLM",
    "OpenAIChatLikeLLM",
    "create_llm",
    "PromptBuilder",
    "PromptTemplate",
    "RenderedPrompt",
]
