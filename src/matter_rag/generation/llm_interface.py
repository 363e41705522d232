"""matter_rag.generation.llm_interface

Interface and factory for the chat model that writes matter analysis.

The pipelines only need two calls: a single-turn ``generate`` with an
optional system prompt, and a multi-turn ``chat`` over an already cleaned
conversation.

Classes
-------
BaseLLM
    Abstract interface used by the analysis and tools pipelines.
OpenAIChatLikeLLM
    Chat completions using an OpenAI-compatible HTTP API via LangChain.

Functions
---------
create_llm
    Construct an LLM implementation from a configuration mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

ROLE_MESSAGES = {
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(
        system: Optional[str],
        messages: Sequence[Mapping[str, str]],
    ) -> list[BaseMessage]:
    """Convert ``{"role", "content"}`` mappings into LangChain chat messages.

    Parameters
    ----------
    system : str or None
        System prompt placed first when given.
    messages : Sequence[Mapping[str, str]]
        Conversation turns with plain-string ``content``.

    Returns
    -------
    list[BaseMessage]

    Raises
    ------
    ValueError
        If a message has a role other than user/assistant.
    """
    out: list[BaseMessage] = []
    if system:
        out.append(SystemMessage(content=system))
    for m in messages:
        role = str(m.get("role", "user")).lower()
        message_cls = ROLE_MESSAGES.get(role)
        if message_cls is None:
            raise ValueError(f"Unsupported message role: {role!r}")
        out.append(message_cls(content=m.get("content", "")))
    return out


class BaseLLM(ABC):
    """Abstract interface for chat generation."""

    @abstractmethod
    def chat(self, system: Optional[str], messages: Sequence[Mapping[str, str]], **kwargs) -> str:
        """Generate the next assistant turn of a conversation.

        Parameters
        ----------
        system : str or None
            System prompt.
        messages : Sequence[Mapping[str, str]]
            Conversation turns as ``{"role": ..., "content": ...}`` with
            string content.
        **kwargs
            Additional keyword arguments forwarded to the underlying model.

        Returns
        -------
        str
            Generated text.
        """

    def generate(self, prompt: str, system: Optional[str] = None, **kwargs) -> str:
        """Generate text for a single user prompt. Forwards to :meth:`chat`."""
        return self.chat(system, [{"role": "user", "content": prompt}], **kwargs)


class OpenAIChatLikeLLM(BaseLLM):
    """LLM interface using an OpenAI-compatible Chat Completions API.

    Parameters
    ----------
    model_name : str
        Model identifier.
    api_base : str or None, optional
        Base URL for the OpenAI-compatible API endpoint.
    api_key : str or None, optional
        API key value. Defaults to ``"fake"`` for local deployments that do
        not require authentication.
    **model_kwargs : Any
        Forwarded to ``ChatOpenAI`` (e.g. ``temperature``, ``max_tokens``).
    """

    def __init__(
        self,
        model_name: str,
        api_base: str | None = None,
        api_key: str | None = "fake",
        **model_kwargs: Any,
    ):
        self.model_name = model_name
        self.api_base = api_base
        self.llm = ChatOpenAI(model=model_name, base_url=api_base, api_key=api_key, **model_kwargs)

    @classmethod
    def from_config_dict(cls, config: Mapping[str, Any]) -> "OpenAIChatLikeLLM":
        """Create the chat model from a ``generator_llm`` mapping.

        Raises
        ------
        ValueError
            If ``model_name`` is missing.
        """
        model_name = config.get("model_name")
        if not model_name:
            raise ValueError("LLM config requires 'model_name'.")
        return cls(
            model_name=model_name,
            api_base=config.get("api_base"),
            api_key=config.get("api_key", "fake"),
            **(config.get("model_kwargs") or {}),
        )

    def chat(self, system: Optional[str], messages: Sequence[Mapping[str, str]], **kwargs) -> str:
        response = self.llm.invoke(to_langchain_messages(system, messages), **kwargs)
        content = response.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        return content


# ----------------- Factory helpers -----------------

def _normalize_llm_kind(kind: str) -> str:
    """Normalise a ``type`` value to a registry key.

    Case, hyphens, underscores and spaces are ignored, so ``"OpenAIChatLike"``
    and ``"openai-chat-like"`` select the same backend.
    """
    return "".join(ch for ch in kind.lower() if ch not in "-_ ")


_REGISTRY: dict[str, type[OpenAIChatLikeLLM]] = {
    "openaichatlike": OpenAIChatLikeLLM,
    "openaichat": OpenAIChatLikeLLM,
}


def create_llm(config: Mapping[str, Any]) -> BaseLLM:
    """Create an LLM implementation from a ``generator_llm`` mapping.

    The implementation is selected by the ``type`` field.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If ``type`` is missing or selects an unsupported backend.
    """
    if not isinstance(config, Mapping):
        raise TypeError(f"create_llm expected a mapping/dict, got {type(config)}")

    kind_raw = str(config.get("type") or "")
    if not kind_raw.strip():
        raise ValueError("LLM config is missing 'type'. Add e.g. type: OpenAIChatLike.")

    cls = _REGISTRY.get(_normalize_llm_kind(kind_raw))
    if cls is None:
        raise ValueError(f"Unknown LLM type '{kind_raw}'. Supported: OpenAIChatLike.")
    return cls.from_config_dict(config)


__all__ = [
    "BaseLLM",
    "OpenAIChatLikeLLM",
    "create_llm",
    "to_langchain_messages",
]
