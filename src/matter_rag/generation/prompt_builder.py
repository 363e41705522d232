"""matter_rag.generation.prompt_builder

Prompt template definitions and rendering utilities.

Templates are named pairs of Jinja2 strings: a ``system`` part sent as the
system prompt and a ``user`` part sent as the user turn. Both are rendered
with the same variables but kept separate, because chat models take them in
different slots.

Classes
-------
RenderedPrompt
    A rendered system/user pair.
PromptTemplate
    Represents a single named prompt template.
PromptBuilder
    Registry and factory for prompt templates.
"""
from __future__ import annotations

import json
import warnings
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, StrictUndefined

_ENV = Environment(undefined=StrictUndefined, keep_trailing_newline=False)


@dataclass(frozen=True)
class RenderedPrompt:
    """A rendered template.

    Attributes
    ----------
    system : str
        Rendered system prompt. Empty when the template has none.
    user : str
        Rendered user prompt. Empty when the template has none.
    """
    system: str
    user: str


class PromptTemplate:
    """Represents a single named prompt template.

    Parameters
    ----------
    name : str
        Name of the template.
    system : str or None, optional
        Jinja2 source of the system prompt.
    user : str, optional
        Jinja2 source of the user prompt.

    Notes
    -----
    Rendering uses ``StrictUndefined``: a variable referenced by the template
    but not supplied raises ``jinja2.UndefinedError``.
    """

    def __init__(self, name: str, system: Optional[str] = None, user: Optional[str] = ""):
        self.name = name
        self.system = system or ""
        self.user = user or ""

    def render(self, **kwargs) -> RenderedPrompt:
        """Render both parts with the same variables."""
        return RenderedPrompt(
            system=_ENV.from_string(self.system).render(**kwargs).strip(),
            user=_ENV.from_string(self.user).render(**kwargs).strip(),
        )


class PromptBuilder:
    """Registry and factory for prompt templates.

    Manages a collection of named :class:`PromptTemplate` instances loaded
    from dictionaries, JSON files or package resources.
    """

    def __init__(self):
        self.templates: Dict[str, PromptTemplate] = {}

    @classmethod
    def from_sources(cls, sources: Union[str, List[str]], base_dir: Optional[Path] = None) -> "PromptBuilder":
        """Create a builder and register every template from ``sources``."""
        builder = cls()
        for source in [sources] if isinstance(sources, str) else list(sources):
            builder.register_from_source(source, base_dir=base_dir)
        return builder

    def register_from_dict(self, data: Dict[str, Any]):
        """Register a new template from a dictionary.

        Parameters
        ----------
        data : dict[str, Any]
            Mapping with ``"name"`` and optional ``"system"`` and ``"user"``.
            A list value for ``system`` or ``user`` is joined with newlines.

        Raises
        ------
        KeyError
            If ``"name"`` is missing from ``data``.
        TypeError
            If fields are of invalid types.
        ValueError
            If ``"name"`` is empty.
        """
        if "name" not in data:
            raise KeyError("Template definition missing required key: 'name'")
        name = data["name"]
        if not isinstance(name, str):
            raise TypeError(f"Template 'name' must be a str, got {type(name)!r}")
        if not name.strip():
            raise ValueError("Template 'name' must be a non-empty string")

        parts = {}
        for key in ("system", "user"):
            value = data.get(key) or ""
            if isinstance(value, list):
                value = "\n".join(value)
            if not isinstance(value, str):
                raise TypeError(f"Template '{key}' must be a str or list of str, got {type(value)!r}")
            parts[key] = value

        if name in self.templates:
            warnings.warn(f"Overwriting existing prompt template: {name}")
        self.templates[name] = PromptTemplate(name=name, **parts)

    def _register_payload(self, data: Any, origin: str) -> List[str]:
        registered: List[str] = []
        if isinstance(data, dict):
            self.register_from_dict(data)
            registered.append(data["name"])
        elif isinstance(data, list):
            for item in data:
                if not isinstance(item, dict):
                    raise TypeError(f"Template list items must be dicts, got {type(item)!r}")
                self.register_from_dict(item)
                registered.append(item["name"])
        else:
            raise TypeError(f"{origin} must contain an object or list of objects, got {type(data)!r}")
        return registered

    def register_from_file(self, path: Union[Path, str], base_dir: Optional[Path] = None) -> List[str]:
        """Load and register templates from a JSON file.

        Parameters
        ----------
        path : Path | str
            Path to a JSON file containing one or more template definitions.
        base_dir : Path | None, optional
            If provided and ``path`` is relative, resolve it relative to this directory.

        Returns
        -------
        list[str]
            Names of templates registered from this file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If the file extension is not supported.
        """
        p = Path(path)
        if not p.is_absolute() and base_dir is not None:
            p = base_dir / p
        p = p.resolve()
        if not p.exists():
            raise FileNotFoundError(f"Prompt file not found: {p}")
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported file type: {p.suffix}")

        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return self._register_payload(data, origin=f"Prompt file {p}")

    def register_from_package(self, package: str, resource_path: str) -> List[str]:
        """Load and register templates from a JSON file bundled as a package resource.

        Raises
        ------
        FileNotFoundError
            If the resource does not exist.
        ValueError
            If the resource extension is not supported.
        """
        if not resource_path.lower().endswith(".json"):
            raise ValueError(f"Unsupported resource type: {resource_path}")

        try:
            res = resources.files(package).joinpath(resource_path)
        except ModuleNotFoundError as e:
            raise FileNotFoundError(f"Could not locate resource '{resource_path}' in package '{package}'") from e

        if not res.is_file():
            raise FileNotFoundError(f"Prompt resource not found: pkg:{package}:{resource_path}")

        data = json.loads(res.read_text(encoding="utf-8"))
        return self._register_payload(data, origin=f"Prompt resource pkg:{package}:{resource_path}")

    def register_from_source(self, source: str, base_dir: Optional[Path] = None) -> List[str]:
        """Register templates from a source spec.

        Supported formats
        -----------------
        - ``pkg:<package>:<resource_path>``
        - ``file:<path>``
        - ``<path>`` (plain filesystem path)
        """
        if not isinstance(source, str):
            raise TypeError(f"source must be a str, got {type(source)!r}")

        if source.startswith("pkg:"):
            rest = source[len("pkg:"):]
            if ":" not in rest:
                raise ValueError("pkg: sources must be of the form 'pkg:<package>:<resource_path>'")
            package, resource_path = rest.split(":", 1)
            return self.register_from_package(package.strip(), resource_path.strip())

        if source.startswith("file:"):
            return self.register_from_file(Path(source[len("file:"):].strip()), base_dir=base_dir)

        return self.register_from_file(Path(source), base_dir=base_dir)

    def list_prompts(self) -> List[str]:
        """Return a sorted list of registered prompt template names."""
        return sorted(self.templates.keys())

    def has_prompt(self, name: str) -> bool:
        return name in self.templates

    def get_template(self, name: str) -> PromptTemplate:
        """Get a registered PromptTemplate by name.

        Raises
        ------
        KeyError
            If no template is registered under ``name``.
        """
        if name not in self.templates:
            available = ", ".join(self.list_prompts())
            raise KeyError(f"No template registered under name: {name}. Available: [{available}]")
        return self.templates[name]

    def build(self, name: str, **kwargs) -> RenderedPrompt:
        """Render a prompt by template name.

        Parameters
        ----------
        name : str
            Name of the registered template.
        **kwargs : Any
            Variables to fill into the template.

        Returns
        -------
        RenderedPrompt
            The rendered system and user parts.

        Raises
        ------
        KeyError
            If no template is registered under ``name``.
        """
        return self.get_template(name).render(**kwargs)


__all__ = ["RenderedPrompt", "PromptTemplate", "PromptBuilder"]
