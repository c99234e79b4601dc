"""Pure data types for the in-memory cache engine.

These types are shared by the store, the namespace service and the CLI,
so they live in core/ rather than next to either implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

# Time constants in milliseconds
SECOND_MS: int = 1000
MINUTE_MS: int = 60 * SECOND_MS
HOUR_MS: int = 60 * MINUTE_MS

DEFAULT_TTL_MS: int = 5 * MINUTE_MS
DEFAULT_MAX_ENTRIES: int = 1000
DEFAULT_CLEANUP_INTERVAL_MS: int = MINUTE_MS


@dataclass(slots=True)
class CacheEntry[T]:
    """One stored value plus its bookkeeping timestamps (epoch milliseconds)."""

    data: T
    created_at: float
    expires_at: float
    accessed_at: float
    access_count: int = 0
    tags: frozenset[str] | None = None

    def is_expired(self, now: float) -> bool:
        """Return True once ``now`` has reached the expiry timestamp."""
        return self.expires_at <= now

    def has_tag(self, tag: str) -> bool:
        """Check whether the entry carries ``tag``."""
        return self.tags is not None and tag in self.tags

    def metadata(self) -> CacheEntryMetadata:
        """Return a read-only copy of everything except the payload."""
        return CacheEntryMetadata(
            created_at=self.created_at,
            expires_at=self.expires_at,
            accessed_at=self.accessed_at,
            access_count=self.access_count,
            tags=self.tags,
        )


@dataclass(frozen=True, slots=True)
class CacheEntryMetadata:
    """Entry metadata without the cached value."""

    created_at: float
    expires_at: float
    accessed_at: float
    access_count: int
    tags: frozenset[str] | None = None


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Configuration for a single cache store.

    Attributes:
        default_ttl_ms: TTL applied when ``set`` does not specify one
        max_entries: Capacity bound; zero or negative disables eviction
        enable_auto_cleanup: Whether the periodic sweep task runs
        cleanup_interval_ms: Sweep cadence
        track_access: Whether reads update access time and count
        on_evict: Called with ``(key, entry)`` for every evicted or swept entry

    """

    default_ttl_ms: int = DEFAULT_TTL_MS
    max_entries: int = DEFAULT_MAX_ENTRIES
    enable_auto_cleanup: bool = True
    cleanup_interval_ms: int = DEFAULT_CLEANUP_INTERVAL_MS
    track_access: bool = True
    on_evict: Callable[[str, CacheEntry[Any]], None] | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        """Names accepted in override mappings."""
        return frozenset(f.name for f in fields(cls))

    def merged(self, overrides: Mapping[str, Any] | None = None) -> CacheConfig:
        """Return a copy with ``overrides`` applied.

        Raises:
            AttributeError: If an override names an unknown attribute

        """
        if not overrides:
            return self
        if unknown := set(overrides) - self.field_names():
            msg = f"Unknown cache config attribute: {', '.join(sorted(unknown))}"
            raise AttributeError(msg)
        return replace(self, **dict(overrides))

    def normalized(self, logger: logging.Logger | None = None) -> CacheConfig:
        """Clamp values that would make the store misbehave.

        Invalid values are replaced by defaults and logged rather than raised,
        since a misconfigured cache must never take its caller down.
        """
        log = logger or logging.getLogger(__name__)
        changes: dict[str, Any] = {}

        if self.default_ttl_ms <= 0:
            log.warning("Invalid default_ttl_ms %r, using %d", self.default_ttl_ms, DEFAULT_TTL_MS)
            changes["default_ttl_ms"] = DEFAULT_TTL_MS
        if self.cleanup_interval_ms <= 0:
            log.warning("Invalid cleanup_interval_ms %r, using %d", self.cleanup_interval_ms, DEFAULT_CLEANUP_INTERVAL_MS)
            changes["cleanup_interval_ms"] = DEFAULT_CLEANUP_INTERVAL_MS

        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a reporting-friendly dict (callback reduced to a flag)."""
        return {
            "default_ttl_ms": self.default_ttl_ms,
            "max_entries": self.max_entries,
            "enable_auto_cleanup": self.enable_auto_cleanup,
            "cleanup_interval_ms": self.cleanup_interval_ms,
            "track_access": self.track_access,
            "has_on_evict": self.on_evict is not None,
        }


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time statistics for one store."""

    entry_count: int
    hits: int
    misses: int
    hit_rate: float
    memory_usage: int
    oldest_entry: float | None
    newest_entry: float | None
    expired_count: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize stats for reports and the CLI."""
        return {
            "entry_count": self.entry_count,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 2),
            "memory_usage": self.memory_usage,
            "oldest_entry": self.oldest_entry,
            "newest_entry": self.newest_entry,
            "expired_count": self.expired_count,
        }


@dataclass(frozen=True, slots=True)
class SummaryStats:
    """Aggregate statistics across every namespace of a service."""

    total_entries: int
    total_hits: int
    total_misses: int
    hit_rate: float
    total_memory_usage: int
    namespace_count: int


def calculate_hit_rate(hits: int, misses: int) -> float:
    """Hit rate as a percentage, 0.0 before any request."""
    total = hits + misses
    return hits / total * 100 if total > 0 else 0.0


class CacheEventType(StrEnum):
    """Kinds of events emitted by a cache store."""

    SET = "set"
    GET = "get"
    DELETE = "delete"
    EXPIRE = "expire"
    EVICT = "evict"
    CLEAR = "clear"
    CLEANUP = "cleanup"


@dataclass(frozen=True, slots=True)
class CacheEvent:
    """Notification delivered to cache subscribers."""

    type: CacheEventType
    timestamp: float
    namespace: str | None = None
    key: str | None = None


@dataclass(frozen=True, slots=True)
class CachePreset:
    """Named default configuration for a well-known namespace."""

    name: str
    config: Mapping[str, Any]

    def to_config(self, base: CacheConfig | None = None) -> CacheConfig:
        """Apply the preset over ``base`` (defaults when omitted)."""
        return (base or CacheConfig()).merged(self.config)


type CacheEventListener = Callable[[CacheEvent], None]
