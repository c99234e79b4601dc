"""In-memory cache store with TTL expiration and LRU eviction.

Key Features:
- Per-entry TTL with lazy expiration on read and periodic sweeps
- Capacity bound with least-recently-accessed eviction
- Tag and key-prefix bulk invalidation
- Hit/miss statistics and approximate memory usage
- Synchronous observer events with per-listener error isolation

The store targets a single-threaded asyncio host and holds no locks. The
optional sweep runs as an asyncio task; when no event loop is running at
construction time it starts on ``await store.start()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Self

from aidj_cache.core.logger import LogFormat as LF
from aidj_cache.core.models.cache_types import (
    CacheConfig,
    CacheEntry,
    CacheEntryMetadata,
    CacheEvent,
    CacheEventListener,
    CacheEventType,
    CacheStats,
    calculate_hit_rate,
)
from aidj_cache.services.cache.cache_utils import estimate_size


def _now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


class CacheStore:
    """Single-namespace key/value store with TTL, LRU eviction and statistics."""

    def __init__(
        self,
        config: CacheConfig | Mapping[str, Any] | None = None,
        *,
        namespace: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Full config, or a partial mapping merged over the defaults
            namespace: Label copied into emitted events
            logger: Optional logger instance

        """
        self.logger = logger or logging.getLogger(__name__)
        self.namespace = namespace

        base = config if isinstance(config, CacheConfig) else CacheConfig().merged(config)
        self._config = base.normalized(self.logger)

        self._cache: dict[str, CacheEntry[Any]] = {}
        self._hits = 0
        self._misses = 0
        self._listeners: list[CacheEventListener] = []
        self._cleanup_task: asyncio.Task[None] | None = None
        self._destroyed = False

        if self._config.enable_auto_cleanup:
            self._start_auto_cleanup()

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, *, ttl_ms: float | None = None, tags: Iterable[str] | None = None) -> None:
        """Insert or overwrite ``key``.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: TTL for this entry only (default TTL when omitted)
            tags: Labels for bulk invalidation via ``delete_by_tag``

        """
        if self._destroyed:
            self.logger.warning("Ignoring set(%s) on destroyed cache %s", key, self.namespace or "store")
            return

        now = _now_ms()
        actual_ttl = ttl_ms if ttl_ms is not None else self._config.default_ttl_ms

        if 0 < self._config.max_entries <= len(self._cache):
            self._evict_lru(exclude=key)

        self._cache[key] = CacheEntry(
            data=value,
            created_at=now,
            expires_at=now + actual_ttl,
            accessed_at=now,
            tags=frozenset(tags) if tags is not None else None,
        )
        self.logger.debug("Cache set: %s (TTL: %sms)", key, actual_ttl)
        self._emit(CacheEventType.SET, key, now)

    def get(self, key: str, *, allow_expired: bool = False, update_access: bool = True) -> Any | None:
        """Return the cached value for ``key``, or None on a miss.

        Args:
            key: Cache key
            allow_expired: Return an expired entry instead of purging it
            update_access: Set False to read without touching LRU bookkeeping

        """
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = _now_ms()
        if entry.is_expired(now) and not allow_expired:
            self._misses += 1
            del self._cache[key]
            self.logger.debug("Cache expired: %s", key)
            self._emit(CacheEventType.EXPIRE, key, now)
            return None

        self._hits += 1
        if self._config.track_access and update_access:
            entry.accessed_at = now
            entry.access_count += 1

        self._emit(CacheEventType.GET, key, now)
        return entry.data

    def has(self, key: str) -> bool:
        """Check whether ``key`` is present and live, purging it if expired.

        Does not count as a hit or miss and does not touch access time.
        """
        entry = self._cache.get(key)
        if entry is None:
            return False

        now = _now_ms()
        if entry.is_expired(now):
            del self._cache[key]
            self._emit(CacheEventType.EXPIRE, key, now)
            return False
        return True

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns True if it existed."""
        if self._cache.pop(key, None) is None:
            return False
        self._emit(CacheEventType.DELETE, key, _now_ms())
        return True

    def delete_by_tag(self, tag: str) -> int:
        """Remove every entry tagged with ``tag``; returns the count removed."""
        return self._delete_matching([key for key, entry in self._cache.items() if entry.has_tag(tag)])

    def delete_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``; returns the count removed."""
        return self._delete_matching([key for key in self._cache if key.startswith(prefix)])

    def _delete_matching(self, keys: list[str]) -> int:
        now = _now_ms()
        for key in keys:
            del self._cache[key]
            self._emit(CacheEventType.DELETE, key, now)
        return len(keys)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""
        count = len(self._cache)
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        self.logger.debug("Cleared cache %s (%d items)", self.namespace or "store", count)
        self._emit(CacheEventType.CLEAR, None, _now_ms())

    def refresh(self, key: str, ttl_ms: float | None = None) -> bool:
        """Restart the TTL of ``key`` from now; access count is unchanged.

        Returns:
            True if the key exists (expired entries included), False otherwise

        """
        entry = self._cache.get(key)
        if entry is None:
            return False

        now = _now_ms()
        entry.expires_at = now + (ttl_ms if ttl_ms is not None else self._config.default_ttl_ms)
        entry.accessed_at = now
        return True

    def cleanup(self) -> int:
        """Purge every expired entry.

        Returns:
            Number of entries removed

        """
        now = _now_ms()
        expired = [(key, entry) for key, entry in self._cache.items() if entry.is_expired(now)]

        for key, entry in expired:
            del self._cache[key]
            self._notify_evict(key, entry)

        if expired:
            self.logger.debug("Cleaned up %d expired entries from %s", len(expired), self.namespace or "store")
            self._emit(CacheEventType.CLEANUP, None, now)

        return len(expired)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        """Compute statistics by scanning all entries."""
        now = _now_ms()
        memory_usage = 0
        expired_count = 0
        oldest: float | None = None
        newest: float | None = None

        for entry in self._cache.values():
            memory_usage += estimate_size(entry.data)
            if entry.is_expired(now):
                expired_count += 1
                continue
            if oldest is None or entry.created_at < oldest:
                oldest = entry.created_at
            if newest is None or entry.created_at > newest:
                newest = entry.created_at

        return CacheStats(
            entry_count=len(self._cache),
            hits=self._hits,
            misses=self._misses,
            hit_rate=calculate_hit_rate(self._hits, self._misses),
            memory_usage=memory_usage,
            oldest_entry=oldest,
            newest_entry=newest,
            expired_count=expired_count,
        )

    def keys(self, pattern: str | re.Pattern[str] | None = None) -> list[str]:
        """List keys, optionally filtered by substring or compiled regex.

        Expired keys are listed too; listing never triggers cleanup.
        """
        if pattern is None:
            return list(self._cache)
        if isinstance(pattern, str):
            return [key for key in self._cache if pattern in key]
        return [key for key in self._cache if pattern.search(key)]

    def get_metadata(self, key: str) -> CacheEntryMetadata | None:
        """Return entry metadata without touching access time or statistics."""
        entry = self._cache.get(key)
        return entry.metadata() if entry is not None else None

    def get_config(self) -> CacheConfig:
        """Return the current configuration."""
        return self._config

    def update_config(self, overrides: Mapping[str, Any]) -> None:
        """Merge ``overrides`` into the configuration.

        Only future ``set`` calls see a new default TTL. Toggling
        ``enable_auto_cleanup`` starts or stops the sweep; a changed interval
        restarts a running sweep.
        """
        previous = self._config
        self._config = previous.merged(overrides).normalized(self.logger)

        if self._destroyed:
            return
        if not self._config.enable_auto_cleanup:
            if previous.enable_auto_cleanup:
                self._stop_auto_cleanup()
        elif not previous.enable_auto_cleanup:
            self._start_auto_cleanup()
        elif previous.cleanup_interval_ms != self._config.cleanup_interval_ms and self.cleanup_running:
            self._stop_auto_cleanup()
            self._start_auto_cleanup()

    def subscribe(self, listener: CacheEventListener) -> Callable[[], None]:
        """Register ``listener`` for cache events.

        Returns:
            A callable that removes the listener; calling it twice is harmless

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def cleanup_running(self) -> bool:
        """Whether the periodic sweep task is active."""
        return self._cleanup_task is not None and not self._cleanup_task.done()

    @property
    def destroyed(self) -> bool:
        """Whether ``destroy`` has been called."""
        return self._destroyed

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the sweep task if auto cleanup is enabled and it is not running yet."""
        if self._config.enable_auto_cleanup and not self._destroyed:
            self._start_auto_cleanup()

    def destroy(self) -> None:
        """Stop the sweep, drop all entries and listeners. Idempotent."""
        self._stop_auto_cleanup()
        self._cache.clear()
        self._listeners.clear()
        if not self._destroyed:
            self._destroyed = True
            self.logger.debug("Destroyed cache %s", self.namespace or "store")

    async def aclose(self) -> None:
        """Destroy the store and wait for the sweep task to finish cancelling."""
        task = self._cleanup_task
        self.destroy()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object) -> None:
        """Async context manager exit - ensures the sweep task is stopped."""
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_auto_cleanup(self) -> None:
        if self.cleanup_running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.debug("No running event loop; auto cleanup for %s deferred until start()", self.namespace or "store")
            return
        self._cleanup_task = loop.create_task(self._cleanup_loop())
        self.logger.debug(
            "Started cleanup task for %s every %s",
            LF.entity(self.namespace or "store"),
            LF.duration(self._config.cleanup_interval_ms / 1000),
        )

    def _stop_auto_cleanup(self) -> None:
        if self._cleanup_task is not None:
            if not self._cleanup_task.done():
                self._cleanup_task.cancel()
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        """Periodic sweep loop."""
        while True:
            try:
                await asyncio.sleep(self._config.cleanup_interval_ms / 1000)
                self.cleanup()
            except asyncio.CancelledError:
                self.logger.debug("Cleanup task for %s cancelled", self.namespace or "store")
                raise
            except Exception as e:
                self.logger.exception("Error in cleanup task: %s", e)

    def _evict_lru(self, exclude: str | None = None) -> None:
        """Evict the least recently accessed entry, never ``exclude``."""
        oldest_key: str | None = None
        oldest_access = float("inf")

        for key, entry in self._cache.items():
            if key != exclude and entry.accessed_at < oldest_access:
                oldest_access = entry.accessed_at
                oldest_key = key

        if oldest_key is None:
            return

        entry = self._cache.pop(oldest_key)
        self.logger.debug("Evicted LRU entry: %s", oldest_key)
        self._notify_evict(oldest_key, entry)
        self._emit(CacheEventType.EVICT, oldest_key, _now_ms())

    def _notify_evict(self, key: str, entry: CacheEntry[Any]) -> None:
        if self._config.on_evict is None:
            return
        try:
            self._config.on_evict(key, entry)
        except Exception:
            self.logger.exception("on_evict callback failed for key %s", key)

    def _emit(self, event_type: CacheEventType, key: str | None, timestamp: float) -> None:
        if not self._listeners:
            return
        event = CacheEvent(type=event_type, timestamp=timestamp, namespace=self.namespace, key=key)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # Catch all exceptions to ensure remaining listeners still execute
                self.logger.exception("Cache event listener %r failed while processing %s", listener, event_type.value)
