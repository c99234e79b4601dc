"""Namespaced cache service.

Owns one ``CacheStore`` per namespace, seeded from the preset table, and
exposes namespace-scoped operations plus aggregate statistics. Callers such
as the Last.fm client or the library sync job address caches by namespace
name only and never hold a store across a ``clear_namespace``/``destroy``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Self

from aidj_cache.core.logger import LogFormat as LF
from aidj_cache.core.models.cache_types import (
    CacheConfig,
    CacheEvent,
    CacheEventListener,
    CachePreset,
    CacheStats,
    SummaryStats,
    calculate_hit_rate,
)
from aidj_cache.services.cache.cache_presets import CACHE_PRESETS, resolve_preset_config
from aidj_cache.services.cache.cache_store import CacheStore

if TYPE_CHECKING:
    import re

    from aidj_cache.core.models.settings import CachingConfig


class CacheService:
    """Registry of namespaced cache stores with preset-driven defaults."""

    def __init__(self, presets: Mapping[str, CachePreset] = CACHE_PRESETS, *, logger: logging.Logger | None = None) -> None:
        """Initialize the service.

        Args:
            presets: Read-only namespace -> preset table
            logger: Optional logger instance, shared with the stores it creates

        """
        self.presets = presets
        self.logger = logger or logging.getLogger(__name__)
        self._caches: dict[str, CacheStore] = {}
        self._custom_configs: dict[str, dict[str, Any]] = {}
        self._listeners: list[CacheEventListener] = []

    # ------------------------------------------------------------------
    # Namespace management
    # ------------------------------------------------------------------

    def get_cache(self, namespace: str) -> CacheStore:
        """Return the store for ``namespace``, creating it on first use."""
        cache = self._caches.get(namespace)
        if cache is None:
            config = resolve_preset_config(namespace, self.presets).merged(self._custom_configs.get(namespace))
            cache = CacheStore(config, namespace=namespace, logger=self.logger)
            cache.subscribe(self._forward_event)
            self._caches[namespace] = cache
            self.logger.debug("Created cache: %s", LF.entity(namespace))
        return cache

    def configure(self, namespace: str, overrides: Mapping[str, Any]) -> None:
        """Merge ``overrides`` into the configuration of ``namespace``.

        Creates the store if needed. Entries already stored keep their expiry;
        a new default TTL only applies to later ``set`` calls.

        Raises:
            AttributeError: If an override names an unknown config attribute

        """
        CacheConfig().merged(overrides)  # reject unknown keys before recording them
        self._custom_configs.setdefault(namespace, {}).update(overrides)
        if namespace in self._caches:
            self._caches[namespace].update_config(overrides)
        else:
            self.get_cache(namespace)
        self.logger.info("Updated config for: %s", LF.entity(namespace))

    def configure_batch(self, configs: Mapping[str, Mapping[str, Any]]) -> None:
        """Configure several namespaces at once."""
        for namespace, overrides in configs.items():
            self.configure(namespace, overrides)

    def apply_settings(self, settings: CachingConfig) -> None:
        """Apply the ``caching`` section of the config file."""
        self.configure_batch({namespace: override.to_overrides() for namespace, override in settings.namespaces.items()})

    def get_configuration(self, namespace: str) -> CacheConfig:
        """Return the effective configuration for ``namespace`` without creating it."""
        cache = self._caches.get(namespace)
        if cache is not None:
            return cache.get_config()
        return resolve_preset_config(namespace, self.presets).merged(self._custom_configs.get(namespace)).normalized(self.logger)

    def get_active_namespaces(self) -> list[str]:
        """Namespaces whose stores have been created."""
        return list(self._caches)

    # ------------------------------------------------------------------
    # Namespaced operations
    # ------------------------------------------------------------------

    def set(self, namespace: str, key: str, value: Any, *, ttl_ms: float | None = None, tags: Iterable[str] | None = None) -> None:
        """Store ``value`` under ``key`` in ``namespace``."""
        self.get_cache(namespace).set(key, value, ttl_ms=ttl_ms, tags=tags)

    def get(self, namespace: str, key: str, *, allow_expired: bool = False, update_access: bool = True) -> Any | None:
        """Read ``key`` from ``namespace``; None on a miss."""
        return self.get_cache(namespace).get(key, allow_expired=allow_expired, update_access=update_access)

    def has(self, namespace: str, key: str) -> bool:
        """Check whether ``key`` is live in ``namespace``."""
        return self.get_cache(namespace).has(key)

    def delete(self, namespace: str, key: str) -> bool:
        """Delete ``key`` from ``namespace``."""
        return self.get_cache(namespace).delete(key)

    def delete_by_tag(self, namespace: str, tag: str) -> int:
        """Delete entries tagged ``tag`` within ``namespace``."""
        return self.get_cache(namespace).delete_by_tag(tag)

    def delete_by_prefix(self, namespace: str, prefix: str) -> int:
        """Delete entries whose key starts with ``prefix`` within ``namespace``."""
        return self.get_cache(namespace).delete_by_prefix(prefix)

    def refresh(self, namespace: str, key: str, ttl_ms: float | None = None) -> bool:
        """Restart the TTL of ``key`` in ``namespace``."""
        return self.get_cache(namespace).refresh(key, ttl_ms)

    def keys(self, namespace: str, pattern: str | re.Pattern[str] | None = None) -> list[str]:
        """List keys of an existing namespace (empty for unknown namespaces)."""
        cache = self._caches.get(namespace)
        return cache.keys(pattern) if cache is not None else []

    async def get_or_fetch(
        self,
        namespace: str,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        ttl_ms: float | None = None,
        tags: Iterable[str] | None = None,
    ) -> Any | None:
        """Return the cached value or await ``fetcher`` and cache its result.

        ``None`` results are not cached, so a failed upstream lookup is retried
        on the next call. Fetcher exceptions propagate to the caller.
        """
        cached = self.get(namespace, key)
        if cached is not None:
            return cached

        value = await fetcher()
        if value is not None:
            self.set(namespace, key, value, ttl_ms=ttl_ms, tags=tags)
        return value

    # ------------------------------------------------------------------
    # Bulk operations and statistics
    # ------------------------------------------------------------------

    def clear_namespace(self, namespace: str) -> None:
        """Clear one namespace; every other namespace is untouched."""
        cache = self._caches.get(namespace)
        if cache is not None:
            cache.clear()
            self.logger.info("Cleared namespace: %s", LF.entity(namespace))

    def clear_all(self) -> None:
        """Clear every namespace."""
        for cache in self._caches.values():
            cache.clear()
        self.logger.info("Cleared all caches (%s namespaces)", LF.number(len(self._caches)))

    def cleanup(self) -> dict[str, int]:
        """Purge expired entries everywhere; returns counts per namespace."""
        return {namespace: cache.cleanup() for namespace, cache in self._caches.items()}

    def get_namespace_stats(self, namespace: str) -> CacheStats | None:
        """Stats for ``namespace``, or None if it was never created."""
        cache = self._caches.get(namespace)
        return cache.get_stats() if cache is not None else None

    def get_all_stats(self) -> dict[str, CacheStats]:
        """Stats for every active namespace."""
        return {namespace: cache.get_stats() for namespace, cache in self._caches.items()}

    def get_summary_stats(self) -> SummaryStats:
        """Aggregate stats across all namespaces."""
        all_stats = self.get_all_stats().values()
        total_hits = sum(stats.hits for stats in all_stats)
        total_misses = sum(stats.misses for stats in all_stats)

        return SummaryStats(
            total_entries=sum(stats.entry_count for stats in all_stats),
            total_hits=total_hits,
            total_misses=total_misses,
            hit_rate=calculate_hit_rate(total_hits, total_misses),
            total_memory_usage=sum(stats.memory_usage for stats in all_stats),
            namespace_count=len(self._caches),
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: CacheEventListener) -> Callable[[], None]:
        """Register a listener for events from every namespace."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _forward_event(self, event: CacheEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self.logger.exception("Global cache listener %r failed while processing %s", listener, event.type.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start sweep tasks for stores created before an event loop was running."""
        for cache in self._caches.values():
            await cache.start()

    def destroy(self) -> None:
        """Destroy every store and forget all namespaces, overrides and listeners."""
        for cache in self._caches.values():
            cache.destroy()
        self._caches.clear()
        self._custom_configs.clear()
        self._listeners.clear()
        self.logger.debug("CacheService destroyed")

    async def aclose(self) -> None:
        """Destroy the service and wait for all sweep tasks to stop."""
        await asyncio.gather(*(cache.aclose() for cache in self._caches.values()))
        self.destroy()

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object) -> None:
        """Async context manager exit."""
        await self.aclose()


# Module-level instance container (avoids global statement)
_service_holder: dict[str, CacheService] = {}


def get_cache_service() -> CacheService:
    """Return the process-wide cache service, creating it on first use."""
    if "service" not in _service_holder:
        _service_holder["service"] = CacheService()
    return _service_holder["service"]


def create_cache_service(presets: Mapping[str, CachePreset] = CACHE_PRESETS, *, logger: logging.Logger | None = None) -> CacheService:
    """Create an isolated cache service (tests, scripts)."""
    return CacheService(presets, logger=logger)


def reset_cache_service() -> None:
    """Destroy and drop the process-wide cache service."""
    if service := _service_holder.pop("service", None):
        service.destroy()
