"""
Shared pytest fixtures for the measuring tool tests.
"""

import pytest

from measurelib import InteractionController, MeasureConfig, MeasurementSession, Scale


class FakeClock:
    """Monotonic clock the tests advance by hand"""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def session():
    """Uncalibrated linear (ft) session"""
    return MeasurementSession(unit="ft", service_unit="ft")


@pytest.fixture
def area_session():
    """Session priced per square foot, calibrated at 10 px/ft"""
    s = MeasurementSession(service_unit="sqft")
    s.set_scale(Scale(10.0, "ft"))
    return s


@pytest.fixture
def calibrated_session(session):
    session.set_scale(Scale(10.0, "ft"))
    return session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(session, clock):
    return InteractionController(session, clock=clock)


@pytest.fixture
def recorder():
    """Listener that records every notification"""
    calls = []

    def listener(measurements, scale):
        calls.append((measurements, scale))

    listener.calls = calls
    return listener


@pytest.fixture
def config():
    return MeasureConfig()
