"""Helpers shared by the cache store, the service and the CLI."""

import sys
from typing import Any

from aidj_cache.core.models.cache_types import HOUR_MS, MINUTE_MS, SECOND_MS

KEY_SEPARATOR = ":"
DAY_MS = 24 * HOUR_MS

_TTL_UNITS = ((DAY_MS, "d"), (HOUR_MS, "h"), (MINUTE_MS, "m"), (SECOND_MS, "s"))


def estimate_size(value: Any) -> int:
    """Approximate in-memory size of a cached value in bytes.

    Walks dicts and sequences with an explicit stack, counting each object
    once, so self-referencing and deeply nested values are safe. Diagnostic
    only, never a hard limit.
    """
    total = 0
    seen: set[int] = set()
    stack: list[Any] = [value]

    while stack:
        item = stack.pop()
        if id(item) in seen:
            continue
        seen.add(id(item))
        total += sys.getsizeof(item)

        if isinstance(item, dict):
            stack.extend(item.keys())
            stack.extend(item.values())
        elif isinstance(item, list | tuple | set | frozenset):
            stack.extend(item)

    return total


def _normalize_part(part: Any) -> str:
    if isinstance(part, str):
        return part.strip().lower()
    return str(part)


def build_cache_key(*parts: Any, normalize: bool = True) -> str:
    """Join key parts with ``:`` into a cache key.

    String parts are stripped and lowercased unless ``normalize`` is False,
    so ``build_cache_key("similar-tracks", "Artist", "Song", 20)`` gives
    ``"similar-tracks:artist:song:20"``. ``None`` parts become empty segments.
    """
    if normalize:
        return KEY_SEPARATOR.join("" if part is None else _normalize_part(part) for part in parts)
    return KEY_SEPARATOR.join("" if part is None else str(part) for part in parts)


def format_ttl(ms: float) -> str:
    """Format a TTL in milliseconds using the largest unit that divides it evenly.

    ``90000`` is shown as ``90s`` rather than a rounded ``1m``.
    """
    if ms <= 0:
        return "expired"
    for unit_ms, suffix in _TTL_UNITS:
        if ms >= unit_ms and ms % unit_ms == 0:
            return f"{ms // unit_ms:g}{suffix}"
    return f"{ms:g}ms"
