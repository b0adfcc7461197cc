"""Adapter type keys and the adapter type cache."""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from ..cache.cache import CacheConfig, CacheMetrics, MemoCache
from ..logging import logging_context
from ..utils.exceptions import SynthesisError, ValidationError
from .synthesizer import TypeSynthesizer

logger = logging.getLogger(__name__)


def _interface_class(interface: Any) -> Any:
    # ``Repository[int]`` and friends resolve to their origin class.
    origin = typing.get_origin(interface)
    return origin if isinstance(origin, type) else interface


@dataclass(frozen=True)
class AdapterKey:
    """Identity of one adapter type: the access shape and the interface sequence."""

    shape: type
    interfaces: Tuple[Any, ...]

    @classmethod
    def create(cls, shape: type, interface: Any, other_interfaces: Iterable[Any] = ()) -> "AdapterKey":
        """Build a key with ``interface`` first and duplicates removed, order preserved."""
        ordered: list = []
        for iface in (interface, *other_interfaces):
            iface = _interface_class(iface)
            if not isinstance(iface, type):
                raise SynthesisError(
                    f"interfaces must be classes, got {iface!r}",
                    details={"interface": repr(iface)},
                )
            if iface not in ordered:
                ordered.append(iface)
        return cls(shape, tuple(ordered))

    @classmethod
    def from_sequence(cls, shape: type, interfaces: Iterable[Any]) -> "AdapterKey":
        """Build a key treating the first of ``interfaces`` as primary."""
        interfaces = tuple(interfaces)
        if not interfaces:
            raise ValidationError(
                "at least one interface is required",
                details={"param": "interfaces", "requirement": "non-empty"},
            )
        return cls.create(shape, interfaces[0], interfaces[1:])

    @property
    def primary(self) -> Any:
        return self.interfaces[0]


class AdapterTypeCache:
    """Concurrency-safe ``AdapterKey -> adapter type`` table.

    The synthesizer runs under the cache lock, so it is invoked at most once
    per key even when many threads miss on the same key together.
    """

    def __init__(self, synthesizer: TypeSynthesizer, config: CacheConfig | None = None) -> None:
        self.synthesizer = synthesizer
        self._cache: MemoCache[AdapterKey, type] = MemoCache(
            config if config is not None else CacheConfig(namespace="adapter")
        )

    def get_or_build(self, key: AdapterKey) -> type:
        """Return the adapter type for ``key``, synthesizing it on first use."""
        return self._cache.get_or_build(key, lambda: self._build(key))

    def _build(self, key: AdapterKey) -> type:
        with logging_context(interface=key.primary.__qualname__, cache="adapter"):
            logger.debug(
                "Synthesizing adapter for %s over %d interface(s)",
                key.shape.__qualname__,
                len(key.interfaces),
            )
            return self.synthesizer.synthesize(key.shape, key.interfaces)

    @property
    def config(self) -> CacheConfig:
        return self._cache.config

    @property
    def metrics(self) -> CacheMetrics:
        return self._cache.metrics

    def flush(self) -> None:
        self._cache.flush()

    def reset_version(self, new_version: str) -> None:
        self._cache.reset_version(new_version)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)


__all__ = ["AdapterKey", "AdapterTypeCache"]
