"""Memoization primitives shared by the dispatch and adapter type caches.

Both caches in this package follow the same contract:

* Get-or-build semantics: a key is built at most once and every caller
  presenting an equal key afterwards receives the same value.
* One ``threading.RLock`` per cache guarding the existence check, the build
  and the insertion, so concurrent misses on the same key never produce two
  live entries.
* Failed builds are not cached; the next caller retries the build.
* Growth policy is configuration: unbounded by default, optionally bounded by
  an LRU item limit (``cachetools.LRUCache``) and/or a TTL
  (``cachetools.TTLCache``), plus a generation tag that can be bumped to
  drop every entry.
* Lightweight telemetry counters so callers can validate hit rates.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import weakref
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, Hashable, Mapping, MutableMapping, Tuple, TypeVar

import cachetools

from ..core.config_helpers import read_pyproject_section, split_csv
from ..utils.exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

TelemetryCallback = Callable[[str, Mapping[str, Any]], None]

_MISSING = object()
_UNBOUNDED_LABELS = frozenset({"unbounded", "none", "inf"})


@dataclass(slots=True)
class CacheMetrics:
    """Telemetry counters aggregated by :class:`MemoCache`."""

    hits: int = 0
    misses: int = 0
    builds: int = 0
    build_failures: int = 0
    evictions: int = 0
    resets: int = 0

    def snapshot(self) -> Mapping[str, int]:
        """Return a dictionary suitable for logging or JSON serialisation."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "builds": self.builds,
            "build_failures": self.build_failures,
            "evictions": self.evictions,
            "resets": self.resets,
        }


@dataclass
class CacheConfig:
    """Configuration settings for a memoization cache.

    Parameters
    ----------
    namespace : str
        Name used in telemetry payloads and log records. Default: "impromptu".
    version : str
        Generation tag. Bump it with :meth:`MemoCache.reset_version` to drop
        every cached entry. Default: "v1".
    max_items : int | None
        Maximum number of cached entries before the least recently used one
        is evicted. Default: None (unbounded, entries live for the process
        lifetime).
    ttl_seconds : float | None
        Time-to-live for cache entries in seconds. Default: None (no expiry).
    telemetry : TelemetryCallback | None
        Optional callback for cache events. Default: None.
    """

    namespace: str = "impromptu"
    version: str = "v1"
    max_items: int | None = None
    ttl_seconds: float | None = None
    telemetry: TelemetryCallback | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Reject limits that would make the cache unusable."""
        if self.max_items is not None and self.max_items <= 0:
            raise ValidationError(
                "max_items must be positive",
                details={"param": "max_items", "value": self.max_items, "requirement": "positive"},
            )
        if self.ttl_seconds is not None and self.ttl_seconds <= 0:
            raise ValidationError(
                "ttl_seconds must be positive when provided",
                details={"param": "ttl_seconds", "value": self.ttl_seconds, "requirement": "positive"},
            )

    @property
    def bounded(self) -> bool:
        """Return True when entries may be evicted."""
        return self.max_items is not None or self.ttl_seconds is not None

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], base: "CacheConfig | None" = None
    ) -> "CacheConfig":
        """Merge a ``pyproject.toml`` style mapping with ``base`` defaults."""
        overrides: Dict[str, Any] = {}
        for key in ("namespace", "version"):
            if key in values:
                overrides[key] = str(values[key])
        if "max_items" in values:
            overrides["max_items"] = _parse_limit("max_items", values["max_items"], int)
        if "ttl_seconds" in values:
            overrides["ttl_seconds"] = _parse_limit("ttl_seconds", values["ttl_seconds"], float)
        return replace(base if base is not None else cls(), **overrides)

    @classmethod
    def from_env(
        cls, base: "CacheConfig | None" = None, *, env_var: str = "IMPROMPTU_CACHE"
    ) -> "CacheConfig":
        """Merge comma-separated ``env_var`` overrides with ``base`` defaults.

        Recognised tokens are ``namespace=``, ``version=``, ``max_items=``,
        ``ttl=`` and the bare ``unbounded`` label, which clears both limits.
        """
        cfg = replace(base) if base is not None else cls()
        values: Dict[str, Any] = {}
        for token in split_csv(os.getenv(env_var)):
            if token.lower() in _UNBOUNDED_LABELS:
                cfg = replace(cfg, max_items=None, ttl_seconds=None)
                continue
            name, sep, raw = token.partition("=")
            if not sep:
                raise ConfigurationError(
                    f"Unrecognised cache setting {token!r} in {env_var}",
                    details={"env_var": env_var, "token": token},
                )
            name = name.strip()
            if name == "ttl":
                name = "ttl_seconds"
            values[name] = raw.strip()
        unknown = set(values) - {"namespace", "version", "max_items", "ttl_seconds"}
        if unknown:
            raise ConfigurationError(
                f"Unrecognised cache setting(s) {sorted(unknown)} in {env_var}",
                details={"env_var": env_var, "settings": sorted(unknown)},
            )
        return cls.from_mapping(values, base=cfg)


def _parse_limit(name: str, raw: Any, kind: Callable[[Any], Any]) -> Any:
    if raw is None or (isinstance(raw, str) and raw.strip().lower() in _UNBOUNDED_LABELS):
        return None
    try:
        return kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Cache setting {name} must be a number, got {raw!r}",
            details={"param": name, "value": raw},
        ) from exc


def load_cache_config(name: str, base: CacheConfig | None = None) -> CacheConfig:
    """Return the configuration for the cache called ``name``.

    ``[tool.impromptu.cache.<name>]`` in the working directory's
    ``pyproject.toml`` is applied first, then ``IMPROMPTU_<NAME>_CACHE``
    from the environment. The namespace defaults to ``name``.
    """
    cfg = base if base is not None else CacheConfig(namespace=name)
    section = read_pyproject_section(("tool", "impromptu", "cache", name))
    if section:
        cfg = CacheConfig.from_mapping(section, base=cfg)
    return CacheConfig.from_env(cfg, env_var=f"IMPROMPTU_{name.upper()}_CACHE")


class MemoCache(Generic[K, V]):
    """Thread-safe get-or-build table.

    The backing store is a plain ``dict`` when the configuration is
    unbounded, ``cachetools.LRUCache`` with an item limit and
    ``cachetools.TTLCache`` when a TTL is configured.
    """

    def __init__(self, config: CacheConfig | None = None) -> None:
        """Initialize the backing store described by ``config``."""
        self.config = config if config is not None else CacheConfig()
        self._store: MutableMapping[Tuple[str, K], V] = self._make_store()
        self._lock = threading.RLock()
        self.metrics = CacheMetrics()
        _LIVE_CACHES.add(self)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def version(self) -> str:
        """Return the current generation tag."""
        return self.config.version

    def get_or_build(self, key: K, build: Callable[[], V]) -> V:
        """Return the entry for ``key``, calling ``build`` exactly once on a miss.

        ``build`` runs while the cache lock is held, so concurrent callers
        presenting the same unseen key wait for the first build and then
        observe its result. Exceptions raised by ``build`` propagate and leave
        the cache unchanged.
        """
        with self._lock:
            full_key = (self.config.version, key)
            value = self._store.get(full_key, _MISSING)
            if value is not _MISSING:
                self.metrics.hits += 1
                self._emit("cache_hit", {"key": key})
                return value
            self.metrics.misses += 1
            self._emit("cache_miss", {"key": key})
            try:
                value = build()
            except Exception as exc:
                self.metrics.build_failures += 1
                self._emit("cache_build_failed", {"key": key, "error": type(exc).__name__})
                logger.debug("Build for %r in cache %s failed: %s", key, self.config.namespace, exc)
                raise
            size_before = len(self._store)
            self._store[full_key] = value
            evicted = size_before + 1 - len(self._store)
            if evicted > 0:
                self.metrics.evictions += evicted
                self._emit("cache_evict", {"count": evicted})
            self.metrics.builds += 1
            self._emit("cache_build", {"key": key})
            logger.debug("Cached %r in %s (%d entries)", key, self.config.namespace, len(self._store))
            return value

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the cached entry for ``key`` without building it."""
        with self._lock:
            value = self._store.get((self.config.version, key), _MISSING)
            return default if value is _MISSING else value

    def __contains__(self, key: object) -> bool:
        """Return True when *key* is present in the current generation."""
        with self._lock:
            return (self.config.version, key) in self._store

    def __len__(self) -> int:
        """Return the number of cached entries."""
        with self._lock:
            return len(self._store)

    # ------------------------------------------------------------------
    # Maintenance helpers
    # ------------------------------------------------------------------
    def flush(self) -> None:
        """Drop all entries without changing the generation tag."""
        with self._lock:
            self._store.clear()
            self.metrics.resets += 1
            self._emit("cache_flush", {"reason": "manual"})

    def reset_version(self, new_version: str) -> None:
        """Start a new generation; entries built under older tags are dropped."""
        with self._lock:
            old_version = self.config.version
            self.config = replace(self.config, version=new_version)
            for stale in [k for k in self._store if k[0] != new_version]:
                del self._store[stale]
            self.metrics.resets += 1
            self._emit(
                "cache_version_reset", {"old_version": old_version, "new_version": new_version}
            )
        logger.info(
            "Cache version updated from %s to %s (namespace: %s)",
            old_version,
            new_version,
            self.config.namespace,
        )

    def forksafe_reset(self) -> None:
        """Reset cache state after ``fork`` to avoid cross-process leakage."""
        self._lock = threading.RLock()
        with self._lock:
            self._store.clear()
            self.metrics.resets += 1
            self._emit("cache_reset", {"reason": "forksafe"})

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------
    def _make_store(self) -> MutableMapping[Tuple[str, K], V]:
        cfg = self.config
        if cfg.ttl_seconds is not None:
            maxsize = cfg.max_items if cfg.max_items is not None else sys.maxsize
            return cachetools.TTLCache(maxsize=maxsize, ttl=cfg.ttl_seconds)
        if cfg.max_items is not None:
            return cachetools.LRUCache(maxsize=cfg.max_items)
        return {}

    def _emit(self, event: str, payload: Mapping[str, Any]) -> None:
        """Send telemetry events when a callback is registered."""
        if self.config.telemetry is None:
            return
        try:
            self.config.telemetry(event, {"namespace": self.config.namespace, **payload})
        except Exception as exc:  # telemetry is best effort
            logger.debug("Telemetry callback failed for %s: %s", event, exc)


_LIVE_CACHES: "weakref.WeakSet[MemoCache]" = weakref.WeakSet()


def _reset_after_fork() -> None:
    for cache in list(_LIVE_CACHES):
        cache.forksafe_reset()


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_reset_after_fork)


__all__ = [
    "CacheConfig",
    "CacheMetrics",
    "MemoCache",
    "TelemetryCallback",
    "load_cache_config",
]
