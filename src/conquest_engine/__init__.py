"""GPS conquest tracking engine: filtered paths, running distance and area, territory output."""

from .controller import CompletionResult, ConquestController
from .geo import centroid, distance_m, path_length_m, polygon_area_m2
from .location import LocationSource, PushLocationSource
from .models import (
    BoundaryPoint,
    CancelReason,
    ConquestSettings,
    ConquestStatus,
    GeoPoint,
    RawFix,
    SessionSnapshot,
    Territory,
    TerritoryStatus,
    TrackedPoint,
    TrackingOptions,
)
from .sample_filter import FilterVerdict, evaluate, should_accept
from .session import ConquestSession
from .territory import (
    InMemoryTerritoryStore,
    TerritoryStore,
    TerritoryValidationError,
    build_territory,
    validate_territory,
)

__all__ = [
    "BoundaryPoint",
    "CancelReason",
    "CompletionResult",
    "ConquestController",
    "ConquestSession",
    "ConquestSettings",
    "ConquestStatus",
    "FilterVerdict",
    "GeoPoint",
    "InMemoryTerritoryStore",
    "LocationSource",
    "PushLocationSource",
    "RawFix",
    "SessionSnapshot",
    "Territory",
    "TerritoryStatus",
    "TerritoryStore",
    "TerritoryValidationError",
    "TrackedPoint",
    "TrackingOptions",
    "build_territory",
    "centroid",
    "distance_m",
    "evaluate",
    "path_length_m",
    "polygon_area_m2",
    "should_accept",
    "validate_territory",
]
