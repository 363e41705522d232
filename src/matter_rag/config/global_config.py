"""matter_rag.config.global_config

Global configuration loader and accessors.

This module defines a lightweight wrapper around a raw YAML configuration
dictionary, providing validated, cached access to the configuration sections
used across the segmentation, retrieval and generation layers.

Environment variables of the form ``${VAR}`` are expanded recursively in all
string values at load time.

Classes
-------
GlobalConfig
    Loader and accessor for global project configuration.
"""

import os
import yaml
from pathlib import Path
from functools import cached_property

from matter_rag.config.settings import ChunkingConfig, RetrievalConfig

DEFAULT_JURISDICTION = "Bermuda"
DEFAULT_PROMPTS = "pkg:matter_rag.generation:prompts/legal_prompts.json"


def _expand_env(obj):
    """Recursively expand environment variables in a nested structure.

    This function walks nested dictionaries and lists and applies
    :func:`os.path.expandvars` to any string values, expanding patterns of the
    form ``${VAR}`` using the current process environment.

    Parameters
    ----------
    obj : Any
        Object to expand. Supported types are dictionaries, lists, and strings.
        Other types are returned unchanged.

    Returns
    -------
    Any
        A structure of the same shape as ``obj`` with environment variables
        expanded in all string values.
    """
    if isinstance(obj, dict):
        return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v) for v in obj]
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    return obj


class GlobalConfig:
    """Loader and accessor for global project configuration.

    This class wraps a raw configuration dictionary (typically loaded from YAML)
    and exposes validated, cached accessors for commonly used configuration
    sections.

    Parameters
    ----------
    raw : dict
        Raw configuration data as loaded from a YAML file.
    config_path : Path or None, optional
        Absolute path to the loaded config file, used to resolve relative
        paths (prompt files, persist paths).
    """

    def __init__(
            self,
            raw: dict,
            config_path: Path | None = None,
        ):
        self.raw = raw or {}
        self.config_path = config_path

    @classmethod
    def load(
            cls,
            path: str | Path,
        ) -> "GlobalConfig":
        """Load configuration from a YAML file.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        GlobalConfig
            An instance initialised with the loaded and environment-expanded data.
        """
        cfg_path = Path(path).expanduser().resolve()
        with cfg_path.open("r") as f:
            data = yaml.safe_load(f)
        data = _expand_env(data or {})
        return cls(data, config_path=cfg_path)

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve ``value`` relative to the config file directory when known."""
        p = Path(value).expanduser()
        if p.is_absolute() or self.config_path is None:
            return p
        return (Path(self.config_path).parent / p).resolve()

    @cached_property
    def generator_llm(self) -> dict:
        """Return the generator LLM configuration section.

        Returns
        -------
        dict
            The ``generator_llm`` section of the configuration.

        Raises
        ------
        KeyError
            If ``generator_llm`` is missing from configuration.
        TypeError
            If ``generator_llm`` is not a mapping.
        """
        section = self.raw.get("generator_llm")
        if section is None:
            raise KeyError("Missing 'generator_llm' in configuration.")
        if not isinstance(section, dict):
            raise TypeError("'generator_llm' must be a mapping.")
        return section

    @cached_property
    def passage_store(self) -> dict:
        """Return the passage store configuration section.

        Returns
        -------
        dict
            The ``passage_store`` section of the configuration, or an empty dict
            if not present.
        """
        return self.raw.get("passage_store", {}) or {}

    @cached_property
    def chunking(self) -> ChunkingConfig:
        """Return validated segmentation parameters.

        Returns
        -------
        ChunkingConfig
            Built from the ``chunking`` section; defaults apply for missing keys.

        Raises
        ------
        TypeError
            If ``chunking`` is present but not a mapping.
        ValueError
            If the configured sizes are inconsistent.
        """
        return ChunkingConfig.from_mapping(self.raw.get("chunking"))

    @cached_property
    def retrieval(self) -> RetrievalConfig:
        """Return validated retrieval parameters.

        Returns
        -------
        RetrievalConfig
            Built from the ``retrieval`` section; defaults apply for missing keys.
        """
        return RetrievalConfig.from_mapping(self.raw.get("retrieval"))

    @cached_property
    def jurisdiction(self) -> str:
        """Return the default jurisdiction used in analysis prompts."""
        section = self.raw.get("analysis") or {}
        return str(section.get("jurisdiction") or DEFAULT_JURISDICTION)

    @cached_property
    def prompts(self):
        """Return the prompts configuration entry.

        Returns
        -------
        str or list[str]
            The ``prompts`` entry, which may be a single source or a list of
            sources. Defaults to the packaged legal prompt set.
        """
        return self.raw.get("prompts") or DEFAULT_PROMPTS
