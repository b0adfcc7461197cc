"""Adapter type synthesis.

:class:`ProxyTypeSynthesizer` is the default :class:`TypeSynthesizer`. It
builds one subclass of :class:`~impromptu.adapters.proxy.ActLikeProxy` and of
every requested interface, whose namespace holds one forwarder per interface
member:

* functions annotated ``-> None`` forward through ``invoke_action``;
* other functions forward through ``invoke_method``;
* properties forward reads through ``get_property`` and, when the interface
  property has a setter, writes through ``set_property``;
* annotated attributes become read/write forwarding properties.

Forwarders carry the interface member's name, docstring and signature, and
the synthesized type records the shape it was built for as the access
context its forwarders dispatch under.
"""

from __future__ import annotations

import functools
import inspect
import logging
import types
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Protocol, Sequence, Tuple

from ..logging import logging_context
from ..utils.exceptions import SynthesisError
from .proxy import RESERVED_PREFIX, ActLikeProxy

logger = logging.getLogger(__name__)

_SKIPPED_NAMES = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__subclasshook__",
        "__class_getitem__",
        "__getattr__",
        "__getattribute__",
        "__setattr__",
        "__delattr__",
        "__act_like__",
        "__eq__",
        "__hash__",
        "__annotate__",
    }
)


class TypeSynthesizer(Protocol):
    """Produces an adapter type implementing ``interfaces`` for ``shape``."""

    def synthesize(self, shape: type, interfaces: Tuple[type, ...]) -> type:
        ...


@dataclass(frozen=True)
class InterfaceMember:
    """One forwardable member collected from an interface."""

    name: str
    kind: str  # "method", "action", "property" or "attribute"
    source: Any = None
    writable: bool = False


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return getattr(annotation, "__origin__", annotation) is ClassVar


def _returns_none(fn: Callable[..., Any]) -> bool:
    try:
        annotation = inspect.signature(fn).return_annotation
    except (TypeError, ValueError):
        return False
    return annotation is None or annotation is type(None) or annotation == "None"


def _interface_hierarchy(interface: type) -> Sequence[type]:
    return [
        klass
        for klass in reversed(interface.__mro__)
        if klass.__module__ not in ("builtins", "typing", "abc")
    ]


def collect_members(interfaces: Sequence[type]) -> Dict[str, InterfaceMember]:
    """Return the forwardable members of ``interfaces``.

    When several interfaces declare the same name, the earliest interface in
    ``interfaces`` wins; within one interface the most derived class wins.
    """
    members: Dict[str, InterfaceMember] = {}
    for interface in reversed(interfaces):
        for klass in _interface_hierarchy(interface):
            annotations = inspect.get_annotations(klass)
            for name, annotation in annotations.items():
                if name in _SKIPPED_NAMES or _is_classvar(annotation):
                    continue
                if isinstance(vars(klass).get(name), (property, types.FunctionType)):
                    continue
                members[name] = InterfaceMember(name, "attribute", annotation, writable=True)
            for name, value in vars(klass).items():
                if name in _SKIPPED_NAMES:
                    continue
                if isinstance(value, property):
                    members[name] = InterfaceMember(
                        name, "property", value, writable=value.fset is not None
                    )
                elif isinstance(value, types.FunctionType):
                    kind = "action" if _returns_none(value) else "method"
                    members[name] = InterfaceMember(name, kind, value)
    return members


def _method_forwarder(member: InterfaceMember) -> Callable[..., Any]:
    name = member.name
    if member.kind == "action":

        def forward(self, *args, **kwargs):
            cls = type(self)
            cls._impromptu_dispatcher.invoke_action(
                self._impromptu_target(), name, args, kwargs, context=cls._impromptu_context
            )

    else:

        def forward(self, *args, **kwargs):
            cls = type(self)
            return cls._impromptu_dispatcher.invoke_method(
                self._impromptu_target(), name, args, kwargs, context=cls._impromptu_context
            )

    # ``updated=()`` keeps ``__isabstractmethod__`` off the forwarder.
    return functools.update_wrapper(forward, member.source, updated=())


def _property_forwarder(member: InterfaceMember) -> property:
    name = member.name

    def fget(self):
        cls = type(self)
        return cls._impromptu_dispatcher.get_property(
            self._impromptu_target(), name, context=cls._impromptu_context
        )

    def fset(self, value):
        cls = type(self)
        cls._impromptu_dispatcher.set_property(
            self._impromptu_target(), name, value, context=cls._impromptu_context
        )

    doc = member.source.__doc__ if isinstance(member.source, property) else None
    return property(fget, fset if member.writable else None, None, doc)


def _most_derived(interfaces: Sequence[type]) -> Tuple[type, ...]:
    # Listing both a class and its subclass as bases cannot form an MRO.
    return tuple(
        iface
        for iface in interfaces
        if not any(other is not iface and iface in other.__mro__ for other in interfaces)
    )


class ProxyTypeSynthesizer:
    """Build forwarding adapter types bound to one dispatcher.

    Parameters
    ----------
    dispatcher : Dispatcher
        Dispatcher the synthesized forwarders route through.
    runtime : Impromptu, optional
        Runtime used when an adapter is asked to present other interfaces.
    """

    def __init__(self, dispatcher: Any, runtime: Any = None) -> None:
        self.dispatcher = dispatcher
        self.runtime = runtime

    def synthesize(self, shape: type, interfaces: Tuple[type, ...]) -> type:
        for iface in interfaces:
            if not isinstance(iface, type):
                raise SynthesisError(
                    f"interfaces must be classes, got {iface!r}",
                    details={"interface": repr(iface)},
                )
        members = collect_members(interfaces)
        reserved = sorted(name for name in members if name.startswith(RESERVED_PREFIX))
        if reserved:
            raise SynthesisError(
                f"interface members {reserved} collide with the adapter's reserved names",
                details={"members": reserved},
            )

        namespace: Dict[str, Any] = {
            "__slots__": (),
            "__module__": __name__,
            "__doc__": f"Adapter presenting {', '.join(i.__qualname__ for i in interfaces)}.",
            "_impromptu_interfaces": tuple(interfaces),
            "_impromptu_context": shape,
            "_impromptu_dispatcher": self.dispatcher,
            "_impromptu_runtime": self.runtime,
        }
        for member in members.values():
            if member.kind in ("method", "action"):
                namespace[member.name] = _method_forwarder(member)
            else:
                namespace[member.name] = _property_forwarder(member)

        name = "ActLike_" + "_".join(iface.__name__ for iface in interfaces)
        with logging_context(interface=interfaces[0].__qualname__, adapter_type=name):
            try:
                cls = types.new_class(
                    name,
                    (ActLikeProxy, *_most_derived(interfaces)),
                    exec_body=lambda ns: ns.update(namespace),
                )
            except TypeError as exc:
                raise SynthesisError(
                    f"cannot build an adapter type for {[i.__qualname__ for i in interfaces]}: {exc}",
                    details={"interfaces": [repr(i) for i in interfaces], "shape": repr(shape)},
                ) from exc
            abstract = sorted(getattr(cls, "__abstractmethods__", ()))
            if abstract:
                raise SynthesisError(
                    f"{name} leaves abstract members unimplemented: {abstract}",
                    details={"members": abstract, "shape": repr(shape)},
                )
            logger.debug(
                "Synthesized %s for %s with %d forwarded members",
                name,
                shape.__qualname__,
                len(members),
            )
        return cls


__all__ = ["InterfaceMember", "ProxyTypeSynthesizer", "TypeSynthesizer", "collect_members"]
