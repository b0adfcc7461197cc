"""Dispatch handles, the dispatch cache and the dispatcher facade.

Every late-bound call funnels through :meth:`Dispatcher.invoke`: the call is
described by an :class:`~impromptu.dispatch.keys.OperationKey`, the key is
resolved to a shared :class:`DispatchHandle` through the
:class:`DispatchCache`, and the handle executes against the target.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Sequence

from ..cache.cache import CacheConfig, CacheMetrics, MemoCache
from ..logging import logging_context
from .binder import Rule, bind
from .keys import OperationKey, OperationKind

logger = logging.getLogger(__name__)


class DispatchHandle:
    """Executable form of one operation key.

    The handle memoises one binding rule per receiver type. The rule table is
    only ever extended with equivalent rules, so executing a handle needs no
    locking: two threads binding the same receiver type concurrently produce
    interchangeable rules and either may be kept.
    """

    __slots__ = ("key", "_rules")

    def __init__(self, key: OperationKey) -> None:
        self.key = key
        self._rules: Dict[type, Rule] = {}

    def execute(
        self, target: Any, args: Sequence[Any] = (), kwargs: Mapping[str, Any] | None = None
    ) -> Any:
        """Perform the operation against ``target``."""
        receiver_type = type(target)
        rule = self._rules.get(receiver_type)
        if rule is None:
            rule = self._rules.setdefault(receiver_type, bind(self.key, receiver_type))
        return rule(target, tuple(args), kwargs or {})

    __call__ = execute

    @property
    def bound_types(self) -> tuple:
        """Receiver types this handle has bound rules for."""
        return tuple(self._rules)

    def __repr__(self) -> str:
        return f"DispatchHandle({self.key.kind.value} {self.key.name!r})"


class DispatchCache:
    """Concurrency-safe ``OperationKey -> DispatchHandle`` table."""

    def __init__(self, config: CacheConfig | None = None) -> None:
        self._cache: MemoCache[OperationKey, DispatchHandle] = MemoCache(
            config if config is not None else CacheConfig(namespace="dispatch")
        )

    def resolve(self, key: OperationKey, build: Callable[[], DispatchHandle]) -> DispatchHandle:
        """Return the cached handle for ``key``, building it with ``build`` on a miss."""
        return self._cache.get_or_build(key, build)

    def handle_for(self, key: OperationKey) -> DispatchHandle:
        """Return the handle for ``key``, building a :class:`DispatchHandle` if needed."""
        return self.resolve(key, lambda: self._build(key))

    @staticmethod
    def _build(key: OperationKey) -> DispatchHandle:
        with logging_context(operation=key.kind.value, member=key.name, cache="dispatch"):
            logger.debug("Building dispatch handle for %s %r", key.kind.value, key.name)
            return DispatchHandle(key)

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


class Dispatcher:
    """Perform late-bound member operations through a shared handle cache.

    Parameters
    ----------
    cache : DispatchCache, optional
        The handle cache to use. A fresh cache built from ``config`` is
        created when omitted.
    config : CacheConfig, optional
        Configuration for the fresh cache; ignored when ``cache`` is given.
    """

    def __init__(self, cache: DispatchCache | None = None, *, config: CacheConfig | None = None) -> None:
        self.cache = cache if cache is not None else DispatchCache(config)

    def invoke(
        self,
        target: Any,
        kind: OperationKind | str,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        context: type | None = None,
    ) -> Any:
        """Resolve and execute one late-bound operation.

        ``context`` is the class whose access privileges the member is
        resolved with; ``None`` uses the target's own type. Returns ``None``
        for ``INVOKE_ACTION`` and ``SET_PROPERTY``.
        """
        key = OperationKey.for_call(kind, name, args, kwargs, context)
        handle = self.cache.handle_for(key)
        result = handle.execute(target, args, kwargs)
        if key.kind is OperationKind.INVOKE_METHOD or key.kind is OperationKind.GET_PROPERTY:
            return result
        return None

    def invoke_method(
        self,
        target: Any,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        context: type | None = None,
    ) -> Any:
        """Call ``target.<name>(*args, **kwargs)`` and return its result."""
        return self.invoke(target, OperationKind.INVOKE_METHOD, name, args, kwargs, context=context)

    def invoke_action(
        self,
        target: Any,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        context: type | None = None,
    ) -> None:
        """Call ``target.<name>(*args, **kwargs)`` and discard its result."""
        self.invoke(target, OperationKind.INVOKE_ACTION, name, args, kwargs, context=context)

    def get_property(self, target: Any, name: str, *, context: type | None = None) -> Any:
        """Read ``target.<name>``."""
        return self.invoke(target, OperationKind.GET_PROPERTY, name, context=context)

    def set_property(self, target: Any, name: str, value: Any, *, context: type | None = None) -> None:
        """Assign ``target.<name> = value``."""
        self.invoke(target, OperationKind.SET_PROPERTY, name, (value,), context=context)


__all__ = ["DispatchCache", "DispatchHandle", "Dispatcher"]
