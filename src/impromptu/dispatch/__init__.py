"""Late-bound dispatch: operation keys, handles and the handle cache."""

from .dispatcher import DispatchCache, DispatchHandle, Dispatcher
from .keys import ArgumentInfo, OperationKey, OperationKind, classify_arguments

__all__ = [
    "ArgumentInfo",
    "DispatchCache",
    "DispatchHandle",
    "Dispatcher",
    "OperationKey",
    "OperationKind",
    "classify_arguments",
]
