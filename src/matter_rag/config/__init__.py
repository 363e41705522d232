"""matter_rag.config

Configuration subsystem for the matter_rag pipeline.

This package provides structured access to global configuration loaded from
YAML files, and the explicit parameter dataclasses passed into each pipeline
call.

Modules
-------
global_config
    Global configuration loader and cached accessors.
settings
    ``ChunkingConfig`` and ``RetrievalConfig`` parameter structures.
"""
from .global_config import GlobalConfig
from .settings import ChunkingConfig, RetrievalConfig

__all__ = ["GlobalConfig", "ChunkingConfig", "RetrievalConfig"]
