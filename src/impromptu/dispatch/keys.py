"""Descriptors identifying one late-bound operation shape."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence, Tuple

from ..utils.exceptions import ValidationError


class OperationKind(str, Enum):
    """The four late-bound member operations."""

    INVOKE_METHOD = "invoke_method"
    INVOKE_ACTION = "invoke_action"
    GET_PROPERTY = "get_property"
    SET_PROPERTY = "set_property"

    @property
    def is_call(self) -> bool:
        return self in (OperationKind.INVOKE_METHOD, OperationKind.INVOKE_ACTION)


@dataclass(frozen=True, slots=True)
class ArgumentInfo:
    """Classification of a single argument: positional (``name is None``) or keyword."""

    name: str | None = None

    @property
    def is_keyword(self) -> bool:
        return self.name is not None


POSITIONAL = ArgumentInfo()


def classify_arguments(
    args: Sequence[Any], kwargs: Mapping[str, Any] | None = None
) -> Tuple[ArgumentInfo, ...]:
    """Return the argument shape for a call with ``args`` and ``kwargs``.

    Keyword tokens keep the caller's ordering, so ``f(a=1, b=2)`` and
    ``f(b=2, a=1)`` resolve to distinct (behaviourally identical) handles.
    """
    shape = [POSITIONAL] * len(args)
    if kwargs:
        shape.extend(ArgumentInfo(name) for name in kwargs)
    return tuple(shape)


@dataclass(frozen=True, slots=True)
class OperationKey:
    """Immutable, hashable identity of one late-bound operation.

    Parameters
    ----------
    kind : OperationKind
        Which of the four operations to perform.
    name : str
        The member name, exactly as the caller spelled it.
    argument_shape : tuple of ArgumentInfo
        One token per supplied argument, in order.
    context : type or None
        Access context the member is resolved under. ``None`` resolves under
        the receiver's own type.
    """

    kind: OperationKind
    name: str
    argument_shape: Tuple[ArgumentInfo, ...] = ()
    context: type | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValidationError(
                "member name must be a non-empty string",
                details={"param": "name", "value": self.name},
            )
        if self.context is not None and not isinstance(self.context, type):
            raise ValidationError(
                "context must be a class or None",
                details={"param": "context", "value": repr(self.context)},
            )
        arity = len(self.argument_shape)
        if self.kind is OperationKind.GET_PROPERTY and arity != 0:
            raise ValidationError(
                f"get_property takes no arguments, got {arity}",
                details={"member": self.name, "arity": arity},
            )
        if self.kind is OperationKind.SET_PROPERTY and (
            arity != 1 or self.argument_shape[0].is_keyword
        ):
            raise ValidationError(
                "set_property takes exactly one positional value",
                details={"member": self.name, "arity": arity},
            )

    @classmethod
    def for_call(
        cls,
        kind: OperationKind,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        context: type | None = None,
    ) -> "OperationKey":
        """Build the key describing a call with the given arguments."""
        return cls(OperationKind(kind), name, classify_arguments(args, kwargs), context)

    @property
    def keyword_names(self) -> Tuple[str, ...]:
        return tuple(info.name for info in self.argument_shape if info.name is not None)


__all__ = ["ArgumentInfo", "OperationKey", "OperationKind", "POSITIONAL", "classify_arguments"]
