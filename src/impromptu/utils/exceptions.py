"""Custom exception hierarchy for impromptu.

All exceptions inherit from :class:`ImpromptuError` and support structured
error payloads via the ``details`` kwarg. The late-binding errors also derive
from the builtin exception a plain attribute access or call would raise, so
callers that already handle ``AttributeError``/``TypeError`` keep working.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ImpromptuError",
    "ValidationError",
    "ConfigurationError",
    "MemberNotFound",
    "InvocationError",
    "SynthesisError",
    "InitializationError",
    "explain_exception",
]


class ImpromptuError(Exception):
    """Base class for library-specific errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Attach structured error details alongside the user-facing message."""
        super().__init__(message)
        self.details: dict[str, Any] | None = details

    def __repr__(self) -> str:  # pragma: no cover - repr stability check in tests
        """Return the exception representation with the message payload."""
        cls = self.__class__.__name__
        return f"{cls}({super().__str__()!r})"


class ValidationError(ImpromptuError):
    """Inputs or configuration failed validation."""


class ConfigurationError(ImpromptuError):
    """Invalid or conflicting configuration."""


class MemberNotFound(ImpromptuError, AttributeError):
    """Named member is absent, unreachable, or cannot accept the argument shape."""


class InvocationError(ImpromptuError, TypeError):
    """Member was found but cannot be invoked."""


class SynthesisError(ImpromptuError):
    """No adapter type could be produced for the requested interfaces."""


class InitializationError(ImpromptuError):
    """An adapter instance could not be bound to its wrapped object."""


def explain_exception(e: Exception) -> str:
    """Return a human-readable multi-line description of an exception.

    Parameters
    ----------
    e : Exception
        The exception to format.

    Returns
    -------
    str
        Multi-line human-readable message.
        For ImpromptuError, includes class name, message, and details dict if present.

    Examples
    --------
    >>> from impromptu.utils.exceptions import MemberNotFound, explain_exception
    >>> e = MemberNotFound("no member 'Greet'", details={"member": "Greet"})
    >>> print(explain_exception(e))
    MemberNotFound: no member 'Greet'
      Details: {'member': 'Greet'}
    """
    if isinstance(e, ImpromptuError):
        lines = [f"{e.__class__.__name__}: {str(e)}"]
        if e.details is not None:
            lines.append(f"  Details: {e.details}")
        return "\n".join(lines)
    return str(e)
