"""Pydantic data models for the conquest tracking engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ConquestStatus(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ConquestStatus.COMPLETED, ConquestStatus.CANCELLED)


class CancelReason(str, Enum):
    """Why a session ended in ``cancelled``."""

    USER = "user"
    INSUFFICIENT_POINTS = "insufficient_points"


class TerritoryStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class LocationAccuracy(IntEnum):
    """Accuracy level requested from the location provider (1 = lowest)."""

    LOWEST = 1
    LOW = 2
    BALANCED = 3
    HIGH = 4
    HIGHEST = 5
    BEST_FOR_NAVIGATION = 6


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC so they compare with aware ones.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GeoPoint(BaseModel):
    """A WGS84 coordinate in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class RawFix(GeoPoint):
    """A single raw reading pushed by a location source."""

    timestamp: datetime
    accuracy: float | None = None
    speed: float | None = None
    heading: float | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class TrackedPoint(GeoPoint):
    """A fix that passed the sample filter and was appended to a session."""

    id: int
    session_id: str
    timestamp: datetime
    accuracy: float | None = None
    speed: float | None = None
    heading: float | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ConquestSettings(BaseModel):
    """Sampling thresholds, fixed for the lifetime of a session."""

    model_config = ConfigDict(frozen=True)

    min_distance_threshold_m: float = Field(default=5.0, ge=0)
    min_time_threshold_ms: int = Field(default=3000, ge=0)
    accuracy_threshold_m: float = Field(default=20.0, ge=0)


class TrackingOptions(BaseModel):
    """Options handed to ``LocationSource.start_tracking``."""

    model_config = ConfigDict(frozen=True)

    accuracy: LocationAccuracy = LocationAccuracy.HIGHEST
    time_interval_ms: int
    distance_interval_m: float

    @classmethod
    def from_settings(cls, settings: ConquestSettings) -> TrackingOptions:
        return cls(
            time_interval_ms=settings.min_time_threshold_ms,
            distance_interval_m=settings.min_distance_threshold_m,
        )


class BoundaryPoint(BaseModel):
    """A territory vertex, tagged with its position in the walked path."""

    index: int
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None


class Territory(BaseModel):
    """Polygon artifact produced by a completed conquest.

    ``id`` and ``created_at`` stay ``None`` until a store persists it.
    """

    id: str | None = None
    name: str
    description: str | None = None
    boundaries: list[BoundaryPoint]
    center: GeoPoint
    area: float
    total_distance_m: float = 0.0
    status: TerritoryStatus = TerritoryStatus.ACTIVE
    assigned_to: str
    session_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime | None = None


class SessionSnapshot(BaseModel):
    """Read-only view of a session handed to observers."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None
    user_id: str | None = None
    status: ConquestStatus
    points: tuple[TrackedPoint, ...] = ()
    total_distance_m: float = 0.0
    total_area_m2: float = 0.0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancel_reason: CancelReason | None = None
    last_command: str | None = None

    @computed_field
    @property
    def distance_km(self) -> float:
        return self.total_distance_m / 1000

    @computed_field
    @property
    def area_hectares(self) -> float:
        return self.total_area_m2 / 10_000
