"""Great-circle distance and polygon area for WGS84 coordinates."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = 111_320.0


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance in meters between two points.

    Coordinates are not range-checked.
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))
    return EARTH_RADIUS_M * c


def path_length_m(points: Sequence[GeoPoint]) -> float:
    """Sum of distances between consecutive points, in path order."""
    total = 0.0
    for i in range(1, len(points)):
        total += distance_m(points[i - 1], points[i])
    return total


def polygon_area_m2(points: Sequence[GeoPoint]) -> float:
    """Unsigned area of the closed polygon through ``points``, in square meters.

    Vertices are projected onto a local equirectangular plane centred on the
    mean latitude, then the shoelace formula is applied. The last vertex is
    implicitly joined back to the first. Self-intersecting paths are not
    rejected; their result is the net shoelace sum.
    """
    if len(points) < 3:
        raise ValueError(f"A polygon needs at least 3 points, got {len(points)}")

    center = centroid(points)
    lng_scale = METERS_PER_DEGREE * math.cos(math.radians(center.latitude))
    xy = [
        ((p.longitude - center.longitude) * lng_scale, (p.latitude - center.latitude) * METERS_PER_DEGREE)
        for p in points
    ]

    twice_area = 0.0
    for i, (x1, y1) in enumerate(xy):
        x2, y2 = xy[(i + 1) % len(xy)]
        twice_area += x1 * y2 - x2 * y1
    return abs(twice_area) / 2.0


def centroid(points: Sequence[GeoPoint]) -> GeoPoint:
    """Arithmetic mean of the latitudes and longitudes."""
    if not points:
        raise ValueError("Cannot take the centroid of an empty point list")
    n = len(points)
    return GeoPoint(
        latitude=sum(p.latitude for p in points) / n,
        longitude=sum(p.longitude for p in points) / n,
    )
