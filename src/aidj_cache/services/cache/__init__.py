"""In-memory cache engine: stores, namespace service and presets."""

from aidj_cache.services.cache.cache_presets import CACHE_PRESETS, DEFAULT_CACHE_CONFIG, GENERAL_NAMESPACE
from aidj_cache.services.cache.cache_service import (
    CacheService,
    create_cache_service,
    get_cache_service,
    reset_cache_service,
)
from aidj_cache.services.cache.cache_store import CacheStore
from aidj_cache.services.cache.cache_utils import build_cache_key, estimate_size, format_ttl

__all__ = [
    "CACHE_PRESETS",
    "DEFAULT_CACHE_CONFIG",
    "GENERAL_NAMESPACE",
    "CacheService",
    "CacheStore",
    "build_cache_key",
    "create_cache_service",
    "estimate_size",
    "format_ttl",
    "get_cache_service",
    "reset_cache_service",
]
