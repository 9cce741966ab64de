"""Fix builders and coordinate fixtures shared by the tests."""

from datetime import datetime, timedelta, timezone

from conquest_engine import RawFix

T0 = datetime(2025, 6, 1, 9, 0, 0, tzinfo=timezone.utc)

# Roughly 111 m apart along each axis at the equator.
TRIANGLE = [(0.0, 0.0), (0.0, 0.001), (0.001, 0.001)]
SQUARE = [(0.0, 0.0), (0.0, 0.001), (0.001, 0.001), (0.001, 0.0)]


def make_fix(lat: float, lon: float, seconds: float = 0.0, accuracy: float | None = 5.0) -> RawFix:
    return RawFix(latitude=lat, longitude=lon, timestamp=T0 + timedelta(seconds=seconds), accuracy=accuracy)


def walk(coords, step_seconds: float = 10.0) -> list[RawFix]:
    return [make_fix(lat, lon, i * step_seconds) for i, (lat, lon) in enumerate(coords)]
