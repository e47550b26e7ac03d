"""Shared fixtures for the mocksmith tests."""

import itertools
from collections.abc import Callable

import pytest

from mocksmith import CallFactory, ClassSynthesizer, MockFactory, SequenceCounter


@pytest.fixture
def sequencer() -> SequenceCounter:
    """A counter that starts at zero for every test."""
    return SequenceCounter()


@pytest.fixture
def clock() -> Callable[[], float]:
    """A clock ticking one second per reading, starting at 1.0."""
    ticks = itertools.count(1)
    return lambda: float(next(ticks))


@pytest.fixture
def call_factory(sequencer: SequenceCounter, clock: Callable[[], float]) -> CallFactory:
    return CallFactory(sequencer=sequencer, clock=clock)


@pytest.fixture
def mock_factory(call_factory: CallFactory) -> MockFactory:
    return MockFactory(synthesizer=ClassSynthesizer(call_factory=call_factory))
