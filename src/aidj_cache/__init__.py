"""Namespaced in-memory cache engine for the AI DJ music backend."""

from aidj_cache.core.models.cache_types import CacheConfig, CacheEvent, CacheEventType, CacheStats, SummaryStats
from aidj_cache.services.cache import (
    CACHE_PRESETS,
    CacheService,
    CacheStore,
    build_cache_key,
    create_cache_service,
    get_cache_service,
    reset_cache_service,
)

__version__ = "1.0.0"

__all__ = [
    "CACHE_PRESETS",
    "CacheConfig",
    "CacheEvent",
    "CacheEventType",
    "CacheService",
    "CacheStats",
    "CacheStore",
    "SummaryStats",
    "__version__",
    "build_cache_key",
    "create_cache_service",
    "get_cache_service",
    "reset_cache_service",
]
