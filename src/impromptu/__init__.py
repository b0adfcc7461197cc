"""
Impromptu (impromptu).

Present loosely-typed objects (dicts, namespaces, objects assembled at
runtime) as instances of statically declared interfaces. Member access on the
returned adapter is forwarded by name to the wrapped object through a cached
late-bound dispatcher.
"""

import importlib
import logging as _logging

from .logging import ensure_logging_context_filter as _ensure_logging_context_filter

# Provide a default no-op handler to avoid "No handler" warnings for library users.
_logging.getLogger(__name__).addHandler(_logging.NullHandler())
_ensure_logging_context_filter(__name__)

__version__ = "0.1.0"

_LAZY_EXPORTS = {
    "Impromptu": "api",
    "act_like": "api",
    "all_act_like": "api",
    "all_call_act_like": "api",
    "call_act_like": "api",
    "call_dynamic_act_like": "api",
    "dynamic_act_like": "api",
    "get_default": "api",
    "invoke": "api",
    "invoke_get": "api",
    "invoke_member": "api",
    "invoke_member_action": "api",
    "invoke_set": "api",
    "reset_default": "api",
    "set_default": "api",
    "ActLikeProxy": "adapters",
    "SupportsActLike": "adapters",
    "is_proxy": "adapters",
    "unwrap": "adapters",
    "OperationKind": "dispatch",
    "CacheConfig": "cache",
    "ImpromptuError": "utils.exceptions",
    "MemberNotFound": "utils.exceptions",
    "InvocationError": "utils.exceptions",
    "SynthesisError": "utils.exceptions",
    "InitializationError": "utils.exceptions",
    "ValidationError": "utils.exceptions",
    "ConfigurationError": "utils.exceptions",
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str):
    """Lazily expose the public API from the package root."""
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f"{__name__}.{_LAZY_EXPORTS[name]}")
    value = getattr(module, name)
    globals()[name] = value
    return value


def __dir__():
    return sorted(list(globals().keys()) + __all__)
