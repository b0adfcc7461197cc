"""Shared utilities used across impromptu."""

from .exceptions import (
    ConfigurationError,
    ImpromptuError,
    InitializationError,
    InvocationError,
    MemberNotFound,
    SynthesisError,
    ValidationError,
    explain_exception,
)

__all__ = [
    "ConfigurationError",
    "ImpromptuError",
    "InitializationError",
    "InvocationError",
    "MemberNotFound",
    "SynthesisError",
    "ValidationError",
    "explain_exception",
]
