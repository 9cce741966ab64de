import pytest

from conquest_engine import ConquestSession, ConquestSettings, PushLocationSource
from helpers import T0


@pytest.fixture
def default_settings():
    return ConquestSettings()


@pytest.fixture
def loose_settings():
    return ConquestSettings(min_distance_threshold_m=0, min_time_threshold_ms=0, accuracy_threshold_m=50)


@pytest.fixture
def source():
    return PushLocationSource()


@pytest.fixture
def session(source, default_settings):
    return ConquestSession(source, default_settings, clock=lambda: T0)


@pytest.fixture
def tracking(session):
    assert session.start("user-1")
    return session
