"""Tests for cache presets and helper functions."""

from __future__ import annotations

import logging
import sys
from unittest.mock import MagicMock

import allure
import pytest

from aidj_cache.core.models.cache_types import DEFAULT_TTL_MS, HOUR_MS, MINUTE_MS, SECOND_MS
from aidj_cache.services.cache.cache_presets import (
    CACHE_PRESETS,
    DEFAULT_CACHE_CONFIG,
    GENERAL_NAMESPACE,
    log_presets,
    resolve_preset_config,
)
from aidj_cache.services.cache.cache_utils import DAY_MS, build_cache_key, estimate_size, format_ttl


@allure.epic("AI DJ Cache")
@allure.feature("Cache Presets")
class TestCachePresets:
    """Preset table contents and lookup."""

    @pytest.mark.parametrize(
        ("namespace", "ttl_ms", "max_entries", "interval_ms"),
        [
            ("library-index", 30 * MINUTE_MS, 10, 5 * MINUTE_MS),
            ("library-sync", HOUR_MS, 50, 10 * MINUTE_MS),
            ("artist-blocklist", 10 * MINUTE_MS, 100, 2 * MINUTE_MS),
            ("lastfm", 5 * MINUTE_MS, 500, MINUTE_MS),
            ("recommendations", 15 * MINUTE_MS, 200, 3 * MINUTE_MS),
            ("search", MINUTE_MS, 100, 30 * SECOND_MS),
            ("user-preferences", 30 * MINUTE_MS, 50, 5 * MINUTE_MS),
            ("general", 5 * MINUTE_MS, 1000, MINUTE_MS),
        ],
    )
    def test_preset_values(self, namespace: str, ttl_ms: int, max_entries: int, interval_ms: int) -> None:
        """Every preset carries its tuned TTL, capacity and sweep cadence."""
        config = resolve_preset_config(namespace)
        assert config.default_ttl_ms == ttl_ms
        assert config.max_entries == max_entries
        assert config.cleanup_interval_ms == interval_ms
        assert config.enable_auto_cleanup is True
        assert config.track_access is True

    def test_general_namespace_present(self) -> None:
        """The fallback namespace has its own preset."""
        assert GENERAL_NAMESPACE in CACHE_PRESETS

    def test_unknown_namespace_falls_back(self) -> None:
        """Unknown namespaces resolve to the default config."""
        config = resolve_preset_config("no-such-namespace")
        assert config is DEFAULT_CACHE_CONFIG
        assert config.default_ttl_ms == DEFAULT_TTL_MS

    def test_table_is_read_only(self) -> None:
        """Presets cannot be modified at runtime."""
        with pytest.raises(TypeError):
            CACHE_PRESETS["lastfm"] = CACHE_PRESETS["search"]  # type: ignore[index]
        with pytest.raises(TypeError):
            CACHE_PRESETS["lastfm"].config["max_entries"] = 1  # type: ignore[index]

    def test_log_presets(self) -> None:
        """Every preset is logged once plus a header."""
        logger = MagicMock(spec=logging.Logger)
        log_presets(CACHE_PRESETS, logger)
        assert logger.info.call_count == len(CACHE_PRESETS) + 1


@allure.epic("AI DJ Cache")
@allure.feature("Cache Utilities")
class TestFormatTtl:
    """Human-readable TTL formatting."""

    @pytest.mark.parametrize(
        ("ms", "expected"),
        [
            (0, "expired"),
            (-5, "expired"),
            (500, "500ms"),
            (SECOND_MS, "1s"),
            (30 * SECOND_MS, "30s"),
            (1500, "1500ms"),
            (90 * SECOND_MS, "90s"),
            (5 * MINUTE_MS, "5m"),
            (90 * MINUTE_MS, "90m"),
            (HOUR_MS, "1h"),
            (2 * DAY_MS, "2d"),
        ],
    )
    def test_format(self, ms: int, expected: str) -> None:
        """Largest unit that divides the TTL evenly wins."""
        assert format_ttl(ms) == expected


@allure.epic("AI DJ Cache")
@allure.feature("Cache Utilities")
class TestBuildCacheKey:
    """Cache key construction."""

    def test_similar_tracks_key(self) -> None:
        """Parts are lowercased, stripped and joined with a colon."""
        assert build_cache_key("similar-tracks", " Radiohead ", "Karma Police", 20) == "similar-tracks:radiohead:karma police:20"

    def test_none_becomes_empty_segment(self) -> None:
        """Missing parts keep their position."""
        assert build_cache_key("album-year", "Artist", None) == "album-year:artist:"

    def test_without_normalization(self) -> None:
        """Raw mode keeps case and whitespace."""
        assert build_cache_key("index", "User1 ", normalize=False) == "index:User1 "


@allure.epic("AI DJ Cache")
@allure.feature("Cache Utilities")
class TestEstimateSize:
    """Approximate memory estimation."""

    def test_scalar(self) -> None:
        """Scalars cost their own size."""
        assert estimate_size(42) == sys.getsizeof(42)

    def test_nested_containers_count_children(self) -> None:
        """Containers include the size of their contents."""
        payload = {"tracks": ["a", "b"], "meta": {"count": 2}}
        assert estimate_size(payload) > sys.getsizeof(payload)
        assert estimate_size(["a", "b"]) == sys.getsizeof(["a", "b"]) + 2 * sys.getsizeof("a")

    def test_larger_payload_is_larger(self) -> None:
        """Estimates grow with content."""
        assert estimate_size(["x" * 1000]) > estimate_size(["x"])

    def test_self_referencing_list(self) -> None:
        """A list containing itself is counted once."""
        looped: list[object] = []
        looped.append(looped)
        assert estimate_size(looped) == sys.getsizeof(looped)

    def test_self_referencing_dict(self) -> None:
        """A dict pointing back to itself terminates."""
        track: dict[str, object] = {"title": "Karma Police"}
        track["self"] = track
        assert estimate_size(track) > sys.getsizeof(track)

    def test_deeply_nested_value(self) -> None:
        """Nesting far beyond the recursion limit is handled."""
        nested: list[object] = []
        for _ in range(sys.getrecursionlimit() * 2):
            nested = [nested]
        assert estimate_size(nested) > 0

    def test_shared_references_counted_once(self) -> None:
        """The same object referenced twice costs its size once."""
        shared = ["x" * 100]
        assert estimate_size([shared, shared]) == sys.getsizeof([shared, shared]) + estimate_size(shared)
