"""Base class and helpers for synthesized adapters."""

from __future__ import annotations

from typing import Any, ClassVar, Iterable, Protocol, Sequence, Tuple, runtime_checkable

from ..utils.exceptions import InitializationError

RESERVED_PREFIX = "_impromptu_"

_UNBOUND = object()


@runtime_checkable
class SupportsActLike(Protocol):
    """Objects that know how to present themselves as a set of interfaces.

    Wrapping an object whose type defines ``__act_like__`` delegates to it
    instead of synthesizing a generic adapter.
    """

    def __act_like__(self, interfaces: Tuple[type, ...], *, context: type | None = None) -> Any:
        ...


class ActLikeProxy:
    """Base of every synthesized adapter type.

    A proxy is created with no arguments and bound to the object it wraps by
    a single call to :meth:`_impromptu_initialize`. Interface members are
    added by the synthesizer as forwarders on a subclass; the base only owns
    the binding, identity, and re-wrapping behaviour.
    """

    __slots__ = ("_impromptu_original", "_impromptu_bound_interfaces")

    _impromptu_interfaces: ClassVar[Tuple[type, ...]] = ()
    _impromptu_context: ClassVar[type | None] = None
    _impromptu_dispatcher: ClassVar[Any] = None
    _impromptu_runtime: ClassVar[Any] = None

    def __init__(self) -> None:
        self._impromptu_original = _UNBOUND
        self._impromptu_bound_interfaces: Tuple[type, ...] = ()

    def _impromptu_initialize(self, original: Any, interfaces: Iterable[type]) -> None:
        """Bind this proxy to ``original`` for ``interfaces``; allowed once."""
        if self._impromptu_original is not _UNBOUND:
            raise InitializationError(
                f"{type(self).__qualname__} is already bound",
                details={"adapter_type": type(self).__qualname__},
            )
        interfaces = tuple(interfaces)
        if not interfaces:
            raise InitializationError(
                "an adapter must be bound to at least one interface",
                details={"adapter_type": type(self).__qualname__},
            )
        implemented = type(self)._impromptu_interfaces
        missing = [iface for iface in interfaces if iface not in implemented]
        if missing:
            raise InitializationError(
                f"{type(self).__qualname__} does not implement "
                + ", ".join(getattr(iface, "__qualname__", repr(iface)) for iface in missing),
                details={
                    "adapter_type": type(self).__qualname__,
                    "missing": [repr(iface) for iface in missing],
                },
            )
        self._impromptu_original = original
        self._impromptu_bound_interfaces = interfaces

    def _impromptu_target(self) -> Any:
        original = self._impromptu_original
        if original is _UNBOUND:
            raise InitializationError(
                f"{type(self).__qualname__} used before initialization",
                details={"adapter_type": type(self).__qualname__},
            )
        return original

    def act_like(self, interface: type, *other_interfaces: type) -> Any:
        """Present the wrapped object as ``interface`` (and ``other_interfaces``)."""
        return self.__act_like__((interface, *other_interfaces))

    def __act_like__(self, interfaces: Sequence[type], *, context: type | None = None) -> Any:
        # Re-wrap the original rather than forwarding through this proxy, keeping
        # the access context this adapter was built with.
        cls = type(self)
        if context is None:
            context = cls._impromptu_context
        runtime = cls._impromptu_runtime
        if runtime is None:
            from ..api import get_default

            runtime = get_default()
        return runtime.wrap(self._impromptu_target(), tuple(interfaces), context=context)

    def __eq__(self, other: object) -> bool:
        return self._impromptu_target() == unwrap(other)

    def __hash__(self) -> int:
        return hash(self._impromptu_target())

    def __str__(self) -> str:
        return str(self._impromptu_target())

    def __repr__(self) -> str:
        names = ", ".join(iface.__qualname__ for iface in type(self)._impromptu_interfaces)
        if self._impromptu_original is _UNBOUND:
            return f"<ActLike[{names}] unbound>"
        return f"<ActLike[{names}] {self._impromptu_original!r}>"


def is_proxy(obj: Any) -> bool:
    """Return True when ``obj`` is a synthesized adapter."""
    return isinstance(obj, ActLikeProxy)


def unwrap(obj: Any) -> Any:
    """Return the object an adapter wraps, or ``obj`` itself."""
    if isinstance(obj, ActLikeProxy):
        return obj._impromptu_target()
    return obj


__all__ = ["ActLikeProxy", "RESERVED_PREFIX", "SupportsActLike", "is_proxy", "unwrap"]
