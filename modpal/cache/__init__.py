"""Persisted caches."""

from .engine_cache import EngineCache, get_engine_cache_path

__all__ = [
    "EngineCache",
    "get_engine_cache_path",
]
