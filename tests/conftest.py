"""Shared pytest fixtures for the impromptu test suite."""

from __future__ import annotations

from typing import Protocol

import pytest

from impromptu import api
from impromptu.adapters.synthesizer import ProxyTypeSynthesizer
from impromptu.api import Impromptu
from impromptu.dispatch.dispatcher import Dispatcher


class CountingSynthesizer:
    """Synthesizer probe recording every synthesis request."""

    def __init__(self, dispatcher, runtime=None):
        self._inner = ProxyTypeSynthesizer(dispatcher, runtime=runtime)
        self.calls = []

    def synthesize(self, shape, interfaces):
        self.calls.append((shape, interfaces))
        return self._inner.synthesize(shape, interfaces)


class Greeter(Protocol):
    def greet(self, name: str) -> str:
        ...


class Counter(Protocol):
    count: int

    def increment(self, by: int = 1) -> None:
        ...


@pytest.fixture(autouse=True)
def _isolate_default_runtime(monkeypatch):
    for var in ("IMPROMPTU_DISPATCH_CACHE", "IMPROMPTU_ADAPTER_CACHE", "IMPROMPTU_CACHE"):
        monkeypatch.delenv(var, raising=False)
    api.reset_default()
    yield
    api.reset_default()


@pytest.fixture
def dispatcher():
    return Dispatcher()


@pytest.fixture
def counting_runtime():
    """Return ``(runtime, synthesizer)`` where the synthesizer counts builds."""
    dispatcher = Dispatcher()
    runtime = Impromptu(dispatcher=dispatcher, synthesizer=CountingSynthesizer(dispatcher))
    runtime.synthesizer._inner.runtime = runtime
    return runtime, runtime.synthesizer


@pytest.fixture
def runtime():
    return Impromptu()


@pytest.fixture
def greeter_interface():
    return Greeter


@pytest.fixture
def counter_interface():
    return Counter
