"""Configuration parsing and coercion utilities.

This module provides helper functions for reading and parsing external
configuration sources like pyproject.toml and environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence, Tuple

try:
    import tomllib as _tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    try:  # pragma: no cover - optional dependency path
        import tomli as _tomllib  # type: ignore[assignment]
    except ModuleNotFoundError:  # pragma: no cover - tomllib unavailable
        _tomllib = None  # type: ignore[assignment]


def read_pyproject_section(path: Sequence[str]) -> Dict[str, Any]:
    """Return a mapping from the requested ``pyproject.toml`` section.

    Parameters
    ----------
    path : Sequence[str]
        Nested keys to traverse in the pyproject.toml structure.
        For example, ``("tool", "impromptu", "cache", "dispatch")``
        will navigate to ``[tool.impromptu.cache.dispatch]``.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing the requested configuration section,
        or an empty dict if the file does not exist or parsing fails.
    """
    if _tomllib is None:
        return {}

    candidate = Path.cwd() / "pyproject.toml"
    if not candidate.exists():
        return {}
    try:
        with candidate.open("rb") as fh:
            data = _tomllib.load(fh)
    except (OSError, ValueError):  # pragma: no cover - permissive fallback
        return {}

    cursor: Any = data
    for key in path:
        if isinstance(cursor, dict) and key in cursor:
            cursor = cursor[key]
        else:
            return {}
    if isinstance(cursor, dict):
        return dict(cursor)
    return {}


def split_csv(value: str | None) -> Tuple[str, ...]:
    """Split a comma-separated environment variable into a tuple of strings.

    Examples
    --------
    >>> split_csv("max_items=64, ttl=2.5")
    ('max_items=64', 'ttl=2.5')

    >>> split_csv(None)
    ()
    """
    if not value:
        return ()
    entries = [item.strip() for item in value.split(",") if item.strip()]
    return tuple(entries)


__all__ = ["read_pyproject_section", "split_csv"]
