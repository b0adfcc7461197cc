from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import cachetools
import pytest

from impromptu.cache import cache as cache_module
from impromptu.cache.cache import CacheConfig, MemoCache
from impromptu.utils.exceptions import ValidationError


def test_get_or_build_builds_once_and_reuses_value():
    cache: MemoCache[str, object] = MemoCache()
    calls = []

    def build():
        calls.append(1)
        return object()

    first = cache.get_or_build("k", build)
    second = cache.get_or_build("k", build)

    assert first is second
    assert len(calls) == 1
    assert cache.metrics.snapshot() == {
        "hits": 1,
        "misses": 1,
        "builds": 1,
        "build_failures": 0,
        "evictions": 0,
        "resets": 0,
    }


def test_failed_build_is_not_cached():
    cache: MemoCache[str, int] = MemoCache()

    def broken():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        cache.get_or_build("k", broken)

    assert "k" not in cache
    assert cache.metrics.build_failures == 1
    assert cache.get_or_build("k", lambda: 7) == 7


def test_none_is_a_valid_cached_value():
    cache: MemoCache[str, None] = MemoCache()
    calls = []
    cache.get_or_build("k", lambda: calls.append(1))
    cache.get_or_build("k", lambda: calls.append(1))
    assert calls == [1]
    assert "k" in cache
    assert cache.get("k", "default") is None


def test_concurrent_misses_build_exactly_once():
    cache: MemoCache[str, object] = MemoCache()
    builds = []
    barrier = threading.Barrier(16)

    def build():
        builds.append(1)
        return object()

    def worker(_):
        barrier.wait()
        return cache.get_or_build("shared", build)

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(worker, range(16)))

    assert len(builds) == 1
    assert all(result is results[0] for result in results)


def test_unbounded_by_default_and_lru_when_limited():
    assert isinstance(MemoCache()._store, dict)

    cache: MemoCache[int, int] = MemoCache(CacheConfig(max_items=2))
    assert isinstance(cache._store, cachetools.LRUCache)
    for key in range(3):
        cache.get_or_build(key, lambda key=key: key * 10)

    assert len(cache) == 2
    assert 0 not in cache
    assert cache.metrics.evictions == 1


def test_ttl_config_uses_ttl_backend():
    cache: MemoCache[int, int] = MemoCache(CacheConfig(ttl_seconds=60.0))
    assert isinstance(cache._store, cachetools.TTLCache)


def test_flush_and_reset_version_drop_entries():
    cache: MemoCache[str, int] = MemoCache(CacheConfig(version="v1"))
    cache.get_or_build("a", lambda: 1)
    cache.flush()
    assert len(cache) == 0

    cache.get_or_build("a", lambda: 1)
    cache.reset_version("v2")
    assert cache.version == "v2"
    assert len(cache) == 0
    assert cache.get_or_build("a", lambda: 2) == 2
    assert cache.metrics.resets == 2


def test_telemetry_events_are_emitted_and_failures_ignored():
    events = []
    cache: MemoCache[str, int] = MemoCache(
        CacheConfig(namespace="t", telemetry=lambda event, payload: events.append((event, payload)))
    )
    cache.get_or_build("a", lambda: 1)
    cache.get_or_build("a", lambda: 1)
    assert [event for event, _ in events] == ["cache_miss", "cache_build", "cache_hit"]
    assert all(payload["namespace"] == "t" for _, payload in events)

    def broken_telemetry(event, payload):
        raise RuntimeError("telemetry down")

    noisy: MemoCache[str, int] = MemoCache(CacheConfig(telemetry=broken_telemetry))
    assert noisy.get_or_build("a", lambda: 3) == 3


@pytest.mark.parametrize("kwargs", [{"max_items": 0}, {"ttl_seconds": 0.0}, {"max_items": -5}])
def test_cache_config_rejects_invalid_limits(kwargs):
    with pytest.raises(ValidationError):
        CacheConfig(**kwargs)


def test_caches_are_cleared_in_a_forked_child():
    cache = MemoCache()
    cache.get_or_build("k", lambda: 1)
    cache_module._reset_after_fork()
    assert len(cache) == 0
    assert cache.metrics.resets == 1
    assert cache.get_or_build("k", lambda: 2) == 2


def test_reset_version_does_not_touch_a_shared_config():
    shared = CacheConfig(namespace="shared")
    first, second = MemoCache(shared), MemoCache(shared)
    first.get_or_build("k", lambda: 1)
    second.get_or_build("k", lambda: 2)

    first.reset_version("v2")

    assert first.config.version == "v2"
    assert shared.version == "v1"
    assert second.config.version == "v1"
    assert second.get_or_build("k", lambda: 3) == 2
