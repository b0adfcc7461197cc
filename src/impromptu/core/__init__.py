"""Configuration helpers shared by the cache and runtime layers."""

from .config_helpers import read_pyproject_section, split_csv

__all__ = ["read_pyproject_section", "split_csv"]
