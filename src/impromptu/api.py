"""Public facade: wrap objects behind interfaces and late-bound member access.

Each entry point exists both as a method on :class:`Impromptu`, which bundles
one dispatcher with one adapter type cache, and as a module-level function
delegating to the process-wide default runtime.

Examples
--------
>>> from typing import Protocol
>>> from types import SimpleNamespace
>>> class Greeter(Protocol):
...     def greet(self, name: str) -> str: ...
>>> bag = SimpleNamespace(greet=lambda name: "Hello, " + name)
>>> act_like(bag, Greeter).greet("World")
'Hello, World'
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Iterator, Sequence, Type, TypeVar

from .adapters.synthesizer import ProxyTypeSynthesizer, TypeSynthesizer
from .adapters.type_cache import AdapterKey, AdapterTypeCache
from .cache.cache import CacheConfig, load_cache_config
from .dispatch.dispatcher import Dispatcher
from .dispatch.keys import OperationKind
from .utils.exceptions import InitializationError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def caller_context(caller: Any) -> type:
    """Return the class whose access privileges ``caller`` stands for."""
    return caller if isinstance(caller, type) else type(caller)


class Impromptu:
    """A dispatcher plus an adapter type cache.

    Parameters
    ----------
    dispatcher : Dispatcher, optional
        Dispatcher used for late-bound calls and by synthesized adapters.
    synthesizer : TypeSynthesizer, optional
        Builds adapter types. Defaults to a :class:`ProxyTypeSynthesizer`
        bound to ``dispatcher``.
    adapter_cache : AdapterTypeCache, optional
        Pre-built adapter type cache; ``synthesizer`` is ignored when given.
    dispatch_config, adapter_config : CacheConfig, optional
        Growth policy for the caches created when not supplied.
    """

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        synthesizer: TypeSynthesizer | None = None,
        adapter_cache: AdapterTypeCache | None = None,
        *,
        dispatch_config: CacheConfig | None = None,
        adapter_config: CacheConfig | None = None,
    ) -> None:
        self.dispatcher = dispatcher if dispatcher is not None else Dispatcher(config=dispatch_config)
        if adapter_cache is None:
            if synthesizer is None:
                synthesizer = ProxyTypeSynthesizer(self.dispatcher, runtime=self)
            adapter_cache = AdapterTypeCache(synthesizer, adapter_config)
        self.adapter_cache = adapter_cache

    @property
    def synthesizer(self) -> TypeSynthesizer:
        return self.adapter_cache.synthesizer

    # ------------------------------------------------------------------
    # Adapter construction
    # ------------------------------------------------------------------
    def wrap(self, original: Any, interfaces: Sequence[Any], *, context: type | None = None) -> Any:
        """Return an adapter presenting ``interfaces`` over ``original``.

        The first interface is primary. ``context`` is the class whose access
        privileges the adapter resolves members with; by default the
        original's own type. Objects whose type defines ``__act_like__`` are
        asked to present themselves instead.
        """
        interfaces = tuple(interfaces)
        if not interfaces:
            raise ValidationError(
                "at least one interface is required",
                details={"param": "interfaces", "requirement": "non-empty"},
            )
        hook = getattr(type(original), "__act_like__", None)
        if hook is not None:
            return hook(original, interfaces, context=context)
        shape = context if context is not None else type(original)
        key = AdapterKey.from_sequence(shape, interfaces)
        adapter_type = self.adapter_cache.get_or_build(key)
        return self._initialize(adapter_type, original, key.interfaces)

    @staticmethod
    def _initialize(adapter_type: type, original: Any, interfaces: tuple) -> Any:
        try:
            adapter = adapter_type()
            adapter._impromptu_initialize(original, interfaces)
        except InitializationError:
            raise
        except Exception as exc:
            raise InitializationError(
                f"cannot initialize {adapter_type.__qualname__}: {exc}",
                details={"adapter_type": adapter_type.__qualname__},
            ) from exc
        return adapter

    def act_like(self, original: Any, interface: Type[T], *other_interfaces: type) -> T:
        """Wrap ``original`` so it presents ``interface`` (and ``other_interfaces``)."""
        return self.wrap(original, (interface, *other_interfaces))

    def call_act_like(
        self, caller: Any, original: Any, interface: Type[T], *other_interfaces: type
    ) -> T:
        """Wrap ``original`` resolving members with ``caller``'s access privileges."""
        return self.wrap(original, (interface, *other_interfaces), context=caller_context(caller))

    def all_act_like(
        self, originals: Iterable[Any], interface: Type[T], *other_interfaces: type
    ) -> Iterator[T]:
        """Lazily wrap every element of ``originals``."""
        for original in originals:
            yield self.act_like(original, interface, *other_interfaces)

    def all_call_act_like(
        self, originals: Iterable[Any], caller: Any, interface: Type[T], *other_interfaces: type
    ) -> Iterator[T]:
        """Lazily wrap every element of ``originals`` with ``caller``'s privileges."""
        for original in originals:
            yield self.call_act_like(caller, original, interface, *other_interfaces)

    def dynamic_act_like(self, original: Any, *interfaces: type) -> Any:
        """Wrap ``original`` with an interface list only known at runtime."""
        return self.wrap(original, interfaces)

    def call_dynamic_act_like(self, caller: Any, original: Any, *interfaces: type) -> Any:
        """:meth:`dynamic_act_like` with ``caller``'s access privileges."""
        return self.wrap(original, interfaces, context=caller_context(caller))

    # ------------------------------------------------------------------
    # Late-bound member access
    # ------------------------------------------------------------------
    def invoke(self, target: Any, kind: OperationKind | str, name: str, /, *args: Any, **kwargs: Any) -> Any:
        return self.dispatcher.invoke(target, kind, name, args, kwargs)

    def invoke_member(self, target: Any, name: str, /, *args: Any, **kwargs: Any) -> Any:
        """Call ``target.<name>(*args, **kwargs)`` by name."""
        return self.dispatcher.invoke_method(target, name, args, kwargs)

    def invoke_member_action(self, target: Any, name: str, /, *args: Any, **kwargs: Any) -> None:
        """Call ``target.<name>(*args, **kwargs)`` by name, discarding the result."""
        self.dispatcher.invoke_action(target, name, args, kwargs)

    def invoke_get(self, target: Any, name: str) -> Any:
        """Read ``target.<name>`` by name."""
        return self.dispatcher.get_property(target, name)

    def invoke_set(self, target: Any, name: str, value: Any) -> None:
        """Assign ``target.<name> = value`` by name."""
        self.dispatcher.set_property(target, name, value)


_default: Impromptu | None = None
_default_lock = threading.Lock()


def get_default() -> Impromptu:
    """Return the process-wide runtime, creating it on first use."""
    global _default
    runtime = _default
    if runtime is not None:
        return runtime
    with _default_lock:
        if _default is None:
            _default = Impromptu(
                dispatch_config=load_cache_config("dispatch"),
                adapter_config=load_cache_config("adapter"),
            )
            logger.debug("Created default runtime")
        return _default


def set_default(runtime: Impromptu) -> Impromptu | None:
    """Install ``runtime`` as the process-wide runtime and return the previous one."""
    global _default
    with _default_lock:
        previous, _default = _default, runtime
    return previous


def reset_default() -> None:
    """Discard the process-wide runtime; the next use creates a fresh one."""
    global _default
    with _default_lock:
        _default = None


def act_like(original: Any, interface: Type[T], *other_interfaces: type) -> T:
    return get_default().act_like(original, interface, *other_interfaces)


def call_act_like(caller: Any, original: Any, interface: Type[T], *other_interfaces: type) -> T:
    return get_default().call_act_like(caller, original, interface, *other_interfaces)


def all_act_like(originals: Iterable[Any], interface: Type[T], *other_interfaces: type) -> Iterator[T]:
    return get_default().all_act_like(originals, interface, *other_interfaces)


def all_call_act_like(
    originals: Iterable[Any], caller: Any, interface: Type[T], *other_interfaces: type
) -> Iterator[T]:
    return get_default().all_call_act_like(originals, caller, interface, *other_interfaces)


def dynamic_act_like(original: Any, *interfaces: type) -> Any:
    return get_default().dynamic_act_like(original, *interfaces)


def call_dynamic_act_like(caller: Any, original: Any, *interfaces: type) -> Any:
    return get_default().call_dynamic_act_like(caller, original, *interfaces)


def invoke(target: Any, kind: OperationKind | str, name: str, /, *args: Any, **kwargs: Any) -> Any:
    return get_default().invoke(target, kind, name, *args, **kwargs)


def invoke_member(target: Any, name: str, /, *args: Any, **kwargs: Any) -> Any:
    return get_default().invoke_member(target, name, *args, **kwargs)


def invoke_member_action(target: Any, name: str, /, *args: Any, **kwargs: Any) -> None:
    get_default().invoke_member_action(target, name, *args, **kwargs)


def invoke_get(target: Any, name: str) -> Any:
    return get_default().invoke_get(target, name)


def invoke_set(target: Any, name: str, value: Any) -> None:
    get_default().invoke_set(target, name, value)


__all__ = [
    "Impromptu",
    "act_like",
    "all_act_like",
    "all_call_act_like",
    "call_act_like",
    "call_dynamic_act_like",
    "caller_context",
    "dynamic_act_like",
    "get_default",
    "invoke",
    "invoke_get",
    "invoke_member",
    "invoke_member_action",
    "invoke_set",
    "reset_default",
    "set_default",
]
