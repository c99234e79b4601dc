"""Preset cache configurations for well-known namespaces.

Each preset tunes TTL, capacity and sweep cadence to the data it holds:
the library index changes rarely and is large, search results go stale
within a minute, Last.fm lookups sit in between.

The table is read-only; runtime changes go through ``CacheService.configure``.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from aidj_cache.core.models.cache_types import HOUR_MS, MINUTE_MS, SECOND_MS, CacheConfig, CachePreset
from aidj_cache.services.cache.cache_utils import format_ttl

GENERAL_NAMESPACE = "general"

DEFAULT_CACHE_CONFIG = CacheConfig()


def _preset(name: str, ttl_ms: int, max_entries: int, cleanup_interval_ms: int) -> CachePreset:
    return CachePreset(
        name=name,
        config=MappingProxyType(
            {
                "default_ttl_ms": ttl_ms,
                "max_entries": max_entries,
                "enable_auto_cleanup": True,
                "cleanup_interval_ms": cleanup_interval_ms,
            }
        ),
    )


CACHE_PRESETS: Mapping[str, CachePreset] = MappingProxyType(
    {
        "library-index": _preset("Library Index", 30 * MINUTE_MS, 10, 5 * MINUTE_MS),
        "library-sync": _preset("Library Sync", HOUR_MS, 50, 10 * MINUTE_MS),
        "artist-blocklist": _preset("Artist Blocklist", 10 * MINUTE_MS, 100, 2 * MINUTE_MS),
        "lastfm": _preset("Last.fm API", 5 * MINUTE_MS, 500, MINUTE_MS),
        "recommendations": _preset("Recommendations", 15 * MINUTE_MS, 200, 3 * MINUTE_MS),
        "search": _preset("Search Results", MINUTE_MS, 100, 30 * SECOND_MS),
        "user-preferences": _preset("User Preferences", 30 * MINUTE_MS, 50, 5 * MINUTE_MS),
        GENERAL_NAMESPACE: _preset("General", 5 * MINUTE_MS, 1000, MINUTE_MS),
    }
)


def resolve_preset_config(namespace: str, presets: Mapping[str, CachePreset] = CACHE_PRESETS) -> CacheConfig:
    """Return the preset config for ``namespace``, or the generic default."""
    preset = presets.get(namespace)
    return preset.to_config(DEFAULT_CACHE_CONFIG) if preset is not None else DEFAULT_CACHE_CONFIG


def log_presets(presets: Mapping[str, CachePreset] = CACHE_PRESETS, logger: logging.Logger | None = None) -> None:
    """Log the preset table for debugging."""
    log = logger or logging.getLogger(__name__)
    log.info("=== Cache Presets ===")

    for namespace, preset in presets.items():
        config = preset.to_config(DEFAULT_CACHE_CONFIG)
        log.info(
            "%s | TTL: %s | Max: %s | Sweep: %s",
            f"{namespace:20}",
            f"{format_ttl(config.default_ttl_ms):6}",
            f"{config.max_entries:5}",
            format_ttl(config.cleanup_interval_ms),
        )
