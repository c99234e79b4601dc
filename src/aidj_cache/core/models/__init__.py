"""Data models shared across the cache engine."""

from aidj_cache.core.models.cache_types import (
    CacheConfig,
    CacheEntry,
    CacheEntryMetadata,
    CacheEvent,
    CacheEventType,
    CachePreset,
    CacheStats,
    SummaryStats,
)
from aidj_cache.core.models.settings import AppSettings, CachingConfig, LoggingConfig, NamespaceOverride

__all__ = [
    "AppSettings",
    "CacheConfig",
    "CacheEntry",
    "CacheEntryMetadata",
    "CacheEvent",
    "CacheEventType",
    "CachePreset",
    "CacheStats",
    "CachingConfig",
    "LoggingConfig",
    "NamespaceOverride",
    "SummaryStats",
]
