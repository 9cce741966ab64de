"""Session-to-territory translation, validation and storage."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Protocol

from .geo import centroid
from .models import BoundaryPoint, GeoPoint, Territory, TerritoryStatus, TrackedPoint

logger = logging.getLogger(__name__)


class TerritoryValidationError(ValueError):
    """Raised when a territory artifact fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def build_territory(
    points: Sequence[TrackedPoint],
    *,
    area_m2: float,
    distance_m: float,
    user_id: str,
    session_id: str | None = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
) -> Territory:
    """Turn the accepted points of a completed session into a Territory."""
    ended_at = ended_at or datetime.now(timezone.utc)
    boundaries = [
        BoundaryPoint(
            index=i,
            latitude=p.latitude,
            longitude=p.longitude,
            timestamp=p.timestamp,
            accuracy=p.accuracy,
        )
        for i, p in enumerate(points)
    ]
    return Territory(
        name=f"Territory {ended_at.date().isoformat()}",
        description=f"Conquered territory with {len(points)} points",
        boundaries=boundaries,
        center=centroid(points),
        area=area_m2,
        total_distance_m=distance_m,
        status=TerritoryStatus.ACTIVE,
        assigned_to=user_id,
        session_id=session_id,
        started_at=started_at,
        ended_at=ended_at,
    )


def validate_territory(territory: Territory) -> None:
    """Raise TerritoryValidationError listing every problem found."""
    errors: list[str] = []

    if len(territory.name.strip()) < 2:
        errors.append("Territory name must be at least 2 characters long")

    if territory.description is not None and len(territory.description.strip()) < 5:
        errors.append("Description must be at least 5 characters long if provided")

    if not territory.boundaries:
        errors.append("At least one boundary point is required")
    else:
        for b in territory.boundaries:
            if not _in_range(b):
                errors.append(f"Boundary point {b.index} has out-of-range coordinates")

    if not -90 <= territory.center.latitude <= 90:
        errors.append("Center latitude must be between -90 and 90")
    if not -180 <= territory.center.longitude <= 180:
        errors.append("Center longitude must be between -180 and 180")

    if territory.area <= 0:
        errors.append("Area must be a positive number")

    if not territory.assigned_to.strip():
        errors.append("Territory must be assigned to a user")

    if errors:
        raise TerritoryValidationError(errors)


def _in_range(p: GeoPoint | BoundaryPoint) -> bool:
    return -90 <= p.latitude <= 90 and -180 <= p.longitude <= 180


class TerritoryStore(Protocol):
    """Durable destination for completed territories."""

    def create(self, territory: Territory) -> Territory: ...

    def list_for_user(self, user_id: str) -> list[Territory]: ...

    def list_all(self) -> list[Territory]: ...


class InMemoryTerritoryStore:
    """Process-local TerritoryStore, keyed by generated territory id."""

    def __init__(self):
        self._territories: dict[str, Territory] = {}
        self._lock = threading.Lock()

    def create(self, territory: Territory) -> Territory:
        """Validate and store a territory, returning the stored copy with id and created_at set."""
        validate_territory(territory)
        stored = territory.model_copy(
            update={
                "id": f"territory_{int(time.time() * 1000)}_{secrets.token_hex(5)}",
                "created_at": datetime.now(timezone.utc),
            }
        )
        with self._lock:
            self._territories[stored.id] = stored
        logger.info(
            "Stored territory %s for %s (%d points, %.1f m2)",
            stored.id, stored.assigned_to, len(stored.boundaries), stored.area,
        )
        return stored

    def get(self, territory_id: str) -> Territory | None:
        with self._lock:
            return self._territories.get(territory_id)

    def list_for_user(self, user_id: str) -> list[Territory]:
        """Territories assigned to ``user_id``, newest first."""
        with self._lock:
            owned = [t for t in self._territories.values() if t.assigned_to == user_id]
        return sorted(owned, key=lambda t: t.created_at, reverse=True)

    def list_all(self) -> list[Territory]:
        with self._lock:
            return list(self._territories.values())
