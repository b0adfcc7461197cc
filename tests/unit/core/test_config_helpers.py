"""Tests for configuration helper utilities."""

import pytest

from impromptu.core import config_helpers
from impromptu.core.config_helpers import read_pyproject_section, split_csv


@pytest.mark.parametrize(
    "input_value, expected",
    [
        (None, ()),
        ("", ()),
        ("   ", ()),
        ("a", ("a",)),
        (" max_items=4 , ttl=1 ", ("max_items=4", "ttl=1")),
        ("a, ,b", ("a", "b")),
    ],
)
def test_split_csv(input_value, expected):
    assert split_csv(input_value) == expected


def test_read_pyproject_section_handles_missing_sources(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert read_pyproject_section(("tool", "impromptu")) == {}

    monkeypatch.setattr(config_helpers, "_tomllib", None)
    (tmp_path / "pyproject.toml").write_text("[tool.impromptu]\nx = 1\n", encoding="utf-8")
    assert read_pyproject_section(("tool", "impromptu")) == {}


def test_read_pyproject_section_reads_nested_tables(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "pyproject.toml").write_text(
        "[tool.impromptu.cache.dispatch]\nmax_items = 8\nversion = \"v3\"\n",
        encoding="utf-8",
    )
    assert read_pyproject_section(("tool", "impromptu", "cache", "dispatch")) == {
        "max_items": 8,
        "version": "v3",
    }
    assert read_pyproject_section(("tool", "impromptu", "cache", "adapter")) == {}
    # A scalar at the end of the path is not a section.
    assert read_pyproject_section(("tool", "impromptu", "cache", "dispatch", "max_items")) == {}
