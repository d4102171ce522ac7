"""Shared fixtures for the alerting test suite."""

import pytest

from adapters.memory.store import InMemoryAlertSink

from doubles import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink(clock: FakeClock) -> InMemoryAlertSink:
    return InMemoryAlertSink(clock=clock)
