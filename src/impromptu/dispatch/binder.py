"""Late-bound member resolution.

A *rule* is the executable form of one :class:`OperationKey` for one
receiver type. Rules are cheap closures; everything that depends only on the
receiver type (mapping detection, name mangling, privilege) is decided when
the rule is bound, everything that depends on the instance is decided when it
runs.

Access privilege follows Python's naming convention. Dunder and plain names
are public. A name with a leading underscore is reachable only from a context
class derived from the class that owns the member; ``__name`` is mangled
against the context class before lookup, the same way the compiler would
inside that class body.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable, Tuple

from ..utils.exceptions import InvocationError, MemberNotFound
from .keys import OperationKey, OperationKind

Rule = Callable[[Any, Tuple[Any, ...], Mapping], Any]

_MISSING = object()


def is_public(name: str) -> bool:
    """Return True for plain and dunder names."""
    return not name.startswith("_") or (name.startswith("__") and name.endswith("__"))


def mangle(name: str, context: type) -> str:
    """Apply private name mangling for ``name`` as written inside ``context``."""
    if not name.startswith("__") or name.endswith("__"):
        return name
    owner = context.__name__.lstrip("_")
    if not owner:
        return name
    return f"_{owner}{name}"


def member_owners(receiver_type: type, name: str) -> Tuple[type, ...]:
    """Return the classes that may own ``name`` on instances of ``receiver_type``.

    A class attribute has a single owner, the first class in the MRO defining
    it. Anything else (instance attributes, ``__getattr__`` members) belongs to
    the receiver's whole class hierarchy.
    """
    for klass in receiver_type.__mro__:
        if name in vars(klass):
            return (klass,)
    return tuple(klass for klass in receiver_type.__mro__ if klass is not object)


def is_reachable(receiver_type: type, name: str, context: type) -> bool:
    """Return True if code in ``context`` may access ``name`` on ``receiver_type``."""
    if is_public(name):
        return True
    # MRO membership rather than issubclass: owners may be non-runtime protocols.
    mro = context.__mro__
    return any(owner in mro for owner in member_owners(receiver_type, name))


def _describe(target: Any) -> str:
    return type(target).__qualname__


def _not_found(target: Any, name: str, reason: str) -> MemberNotFound:
    return MemberNotFound(
        f"'{_describe(target)}' object has no reachable member {name!r} ({reason})",
        details={"member": name, "receiver": _describe(target), "reason": reason},
    )


def _accepts_assignment(static: Any) -> bool:
    if isinstance(static, property):
        return static.fset is not None
    return hasattr(type(static), "__set__")


def _binds(member: Callable[..., Any], args: Tuple[Any, ...], kwargs: Mapping) -> bool:
    try:
        signature = inspect.signature(member)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind(*args, **kwargs)
    except TypeError:
        return False
    return True


def _make_getter(
    name: str, attr_name: str, reachable: bool, as_mapping: bool
) -> Callable[[Any], Any]:
    def get(target: Any) -> Any:
        if as_mapping and name in target:
            return target[name]
        if not reachable:
            raise _not_found(target, name, "not accessible from this context")
        try:
            return getattr(target, attr_name)
        except AttributeError:
            if inspect.getattr_static(target, attr_name, _MISSING) is not _MISSING:
                raise
            raise _not_found(target, name, "absent") from None

    return get


def _make_setter(
    name: str, attr_name: str, reachable: bool, as_mapping: bool
) -> Callable[[Any, Any], None]:
    def set_(target: Any, value: Any) -> None:
        if as_mapping:
            target[name] = value
            return
        if not reachable:
            raise _not_found(target, name, "not accessible from this context")
        static = inspect.getattr_static(target, attr_name, _MISSING)
        if isinstance(static, property) and static.fset is None:
            raise _not_found(target, name, "read-only")
        try:
            setattr(target, attr_name, value)
        except AttributeError as exc:
            frozen = isinstance(exc, dataclasses.FrozenInstanceError)
            if not frozen and static is not _MISSING and _accepts_assignment(static):
                raise
            raise _not_found(target, name, "does not accept assignment") from exc

    return set_


def _make_caller(name: str, get: Callable[[Any], Any], discard: bool) -> Rule:
    def call(target: Any, args: Tuple[Any, ...], kwargs: Mapping) -> Any:
        member = get(target)
        if not callable(member):
            raise InvocationError(
                f"member {name!r} of '{_describe(target)}' is not callable",
                details={"member": name, "receiver": _describe(target), "value_type": type(member).__name__},
            )
        try:
            result = member(*args, **kwargs)
        except TypeError as exc:
            if _binds(member, args, kwargs):
                raise
            raise MemberNotFound(
                f"member {name!r} of '{_describe(target)}' cannot accept "
                f"{len(args)} positional argument(s) and keywords {sorted(kwargs)}",
                details={
                    "member": name,
                    "receiver": _describe(target),
                    "reason": "argument shape",
                    "positional": len(args),
                    "keywords": sorted(kwargs),
                },
            ) from exc
        return None if discard else result

    return call


def bind(key: OperationKey, receiver_type: type) -> Rule:
    """Return the rule performing ``key`` against instances of ``receiver_type``."""
    context = key.context if key.context is not None else receiver_type
    attr_name = mangle(key.name, context)
    reachable = is_reachable(receiver_type, attr_name, context)

    if key.kind is OperationKind.SET_PROPERTY:
        setter = _make_setter(
            key.name, attr_name, reachable, issubclass(receiver_type, MutableMapping)
        )
        return lambda target, args, kwargs: setter(target, args[0])

    getter = _make_getter(key.name, attr_name, reachable, issubclass(receiver_type, Mapping))
    if key.kind.is_call:
        return _make_caller(key.name, getter, discard=key.kind is OperationKind.INVOKE_ACTION)
    return lambda target, args, kwargs: getter(target)


__all__ = ["Rule", "bind", "is_public", "is_reachable", "mangle", "member_owners"]
