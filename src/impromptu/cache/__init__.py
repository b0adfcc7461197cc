"""Cache entry points.

Only the stable cache interfaces are exposed from the package root so callers
do not depend on backend-specific helpers.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time only
    from .cache import CacheConfig, CacheMetrics, MemoCache, TelemetryCallback, load_cache_config


__all__ = (
    "CacheConfig",
    "CacheMetrics",
    "MemoCache",
    "TelemetryCallback",
    "load_cache_config",
)

_NAME_TO_MODULE = {
    "CacheConfig": ("cache", "CacheConfig"),
    "CacheMetrics": ("cache", "CacheMetrics"),
    "MemoCache": ("cache", "MemoCache"),
    "TelemetryCallback": ("cache", "TelemetryCallback"),
    "load_cache_config": ("cache", "load_cache_config"),
}


def __getattr__(name: str) -> Any:
    """Lazily expose cache interfaces from the package root."""
    if name not in __all__:
        raise AttributeError(name)

    module_name, attr_name = _NAME_TO_MODULE[name]
    module = import_module(f"{__name__}.{module_name}")
    value = getattr(module, attr_name)
    globals()[name] = value
    return value
