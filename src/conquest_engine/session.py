"""Conquest session state machine and path accumulator.

A session moves through ``idle -> tracking <-> paused -> completed | cancelled``.
Commands issued from a state that does not allow them are logged and ignored;
each command either applies fully or leaves the session untouched.

All mutation happens under one re-entrant lock, so fixes pushed from a
location callback and commands issued from another thread are serialized.
The lock is re-entrant because a location source may deliver fixes
synchronously from inside ``start_tracking``.
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from .geo import distance_m, polygon_area_m2
from .location import LocationSource
from .models import (
    CancelReason,
    ConquestSettings,
    ConquestStatus,
    RawFix,
    SessionSnapshot,
    Territory,
    TrackedPoint,
    TrackingOptions,
)
from .sample_filter import FilterVerdict, evaluate
from .territory import build_territory

logger = logging.getLogger(__name__)

MIN_TERRITORY_POINTS = 3
MANUAL_POINT_ACCURACY_M = 5.0

Observer = Callable[[SessionSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConquestSession:
    """Owns the accepted points, running totals and lifecycle of one conquest."""

    def __init__(
        self,
        location_source: LocationSource,
        settings: ConquestSettings | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.location_source = location_source
        self.settings = settings or ConquestSettings()
        self._clock = clock
        self._lock = threading.RLock()
        self._observers: list[Observer] = []
        self._feed_active = False

        self._status = ConquestStatus.IDLE
        self._session_id: str | None = None
        self._user_id: str | None = None
        self._points: list[TrackedPoint] = []
        self._point_ids = itertools.count(1)
        self._total_distance_m = 0.0
        self._total_area_m2 = 0.0
        self._started_at: datetime | None = None
        self._ended_at: datetime | None = None
        self._cancel_reason: CancelReason | None = None
        self._last_command: str | None = None

    # -- read side ---------------------------------------------------------

    @property
    def status(self) -> ConquestStatus:
        return self._status

    @property
    def points(self) -> tuple[TrackedPoint, ...]:
        with self._lock:
            return tuple(self._points)

    @property
    def total_distance_m(self) -> float:
        return self._total_distance_m

    @property
    def total_area_m2(self) -> float:
        return self._total_area_m2

    @property
    def cancel_reason(self) -> CancelReason | None:
        return self._cancel_reason

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                session_id=self._session_id,
                user_id=self._user_id,
                status=self._status,
                points=tuple(self._points),
                total_distance_m=self._total_distance_m,
                total_area_m2=self._total_area_m2,
                started_at=self._started_at,
                ended_at=self._ended_at,
                cancel_reason=self._cancel_reason,
                last_command=self._last_command,
            )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer called with a fresh snapshot after every change.

        Returns a function that removes the observer.
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    # -- commands ----------------------------------------------------------

    def start(self, user_id: str) -> bool:
        """Begin tracking for ``user_id``. Only legal from ``idle``."""
        with self._lock:
            if self._status is not ConquestStatus.IDLE:
                self._refuse("start")
                return False

            if not self._ensure_permission():
                logger.warning("Location permission denied, conquest for %s not started", user_id)
                return False

            self._clear()
            self._session_id = uuid.uuid4().hex
            self._user_id = user_id
            self._status = ConquestStatus.TRACKING
            self._started_at = self._clock()
            self._last_command = "start"

            try:
                started = self._start_feed()
            except Exception:
                self._rollback_start()
                raise
            if not started:
                self._rollback_start()
                logger.warning("Location feed failed to start, conquest for %s not started", user_id)
                return False

            logger.info("Conquest %s started for %s", self._session_id, user_id)
            self._notify()
            return True

    def ingest(self, fix: RawFix) -> bool:
        """Offer a raw fix to the session. Returns True if it was appended.

        Fixes arriving in any state other than ``tracking`` are ignored.
        """
        with self._lock:
            if self._status is not ConquestStatus.TRACKING:
                logger.debug("Ignoring fix while %s", self._status.value)
                return False

            previous = self._points[-1] if self._points else None
            verdict = evaluate(fix, previous, self.settings)
            if verdict is not FilterVerdict.ACCEPTED:
                logger.debug("Fix at %s rejected: %s", fix.timestamp, verdict.value)
                return False

            point = TrackedPoint(
                id=next(self._point_ids),
                session_id=self._session_id,
                latitude=fix.latitude,
                longitude=fix.longitude,
                timestamp=fix.timestamp,
                accuracy=fix.accuracy,
                speed=fix.speed,
                heading=fix.heading,
            )
            points = self._points + [point]
            distance = self._total_distance_m
            if previous is not None:
                distance += distance_m(previous, point)
            area = polygon_area_m2(points) if len(points) >= MIN_TERRITORY_POINTS else 0.0

            self._points.append(point)
            self._total_distance_m = distance
            self._total_area_m2 = area
            logger.debug(
                "Accepted point %d: distance=%.1f m area=%.1f m2", point.id, distance, area,
            )
            self._notify()
            return True

    def add_manual_point(self, latitude: float, longitude: float) -> bool:
        """Inject a synthetic fix at the current time through the normal filter."""
        with self._lock:
            if self._status is not ConquestStatus.TRACKING:
                self._refuse("add_manual_point")
                return False
            fix = RawFix(
                latitude=latitude,
                longitude=longitude,
                accuracy=MANUAL_POINT_ACCURACY_M,
                speed=0.0,
                heading=0.0,
                timestamp=self._clock(),
            )
            return self.ingest(fix)

    def pause(self) -> bool:
        with self._lock:
            if self._status is not ConquestStatus.TRACKING:
                self._refuse("pause")
                return False
            self._stop_feed()
            self._status = ConquestStatus.PAUSED
            self._last_command = "pause"
            logger.info("Conquest %s paused", self._session_id)
            self._notify()
            return True

    def resume(self) -> bool:
        """Restart the feed and return to ``tracking``. Stays paused if the feed fails."""
        with self._lock:
            if self._status is not ConquestStatus.PAUSED:
                self._refuse("resume")
                return False
            saved = (list(self._points), self._total_distance_m, self._total_area_m2)
            # Status must already be tracking if the source delivers synchronously.
            self._status = ConquestStatus.TRACKING
            try:
                started = self._start_feed()
            except Exception:
                self._restore_paused(saved)
                raise
            if not started:
                self._restore_paused(saved)
                logger.warning("Location feed failed to restart, conquest %s stays paused", self._session_id)
                return False
            self._last_command = "resume"
            logger.info("Conquest %s resumed", self._session_id)
            self._notify()
            return True

    def complete(self) -> Territory | None:
        """Finish the conquest.

        With at least three points the session becomes ``completed`` and the
        resulting Territory is returned; it is not persisted here. With fewer
        points the session is forced to ``cancelled`` with reason
        ``insufficient_points`` and None is returned.
        """
        with self._lock:
            if self._status not in (ConquestStatus.TRACKING, ConquestStatus.PAUSED):
                self._refuse("complete")
                return None

            self._stop_feed()
            self._last_command = "complete"

            if len(self._points) < MIN_TERRITORY_POINTS:
                count = len(self._points)
                self._end_cancelled(CancelReason.INSUFFICIENT_POINTS)
                logger.warning(
                    "Conquest %s cancelled: %d points, at least %d required",
                    self._session_id, count, MIN_TERRITORY_POINTS,
                )
                self._notify()
                return None

            self._status = ConquestStatus.COMPLETED
            self._ended_at = self._clock()
            territory = build_territory(
                self._points,
                area_m2=self._total_area_m2,
                distance_m=self._total_distance_m,
                user_id=self._user_id,
                session_id=self._session_id,
                started_at=self._started_at,
                ended_at=self._ended_at,
            )
            logger.info(
                "Conquest %s completed: %d points, %.1f m, %.1f m2",
                self._session_id, len(self._points), self._total_distance_m, self._total_area_m2,
            )
            self._notify()
            return territory

    def cancel(self) -> bool:
        with self._lock:
            if self._status not in (ConquestStatus.TRACKING, ConquestStatus.PAUSED):
                self._refuse("cancel")
                return False
            self._stop_feed()
            self._last_command = "cancel"
            self._end_cancelled(CancelReason.USER)
            logger.info("Conquest %s cancelled by user", self._session_id)
            self._notify()
            return True

    def reset(self) -> bool:
        """Return a finished session to ``idle``."""
        with self._lock:
            if not self._status.is_terminal:
                self._refuse("reset")
                return False
            self._clear()
            self._session_id = None
            self._user_id = None
            self._status = ConquestStatus.IDLE
            self._last_command = "reset"
            self._notify()
            return True

    def close(self) -> None:
        """Release the location feed if it is still running."""
        with self._lock:
            self._stop_feed()

    def __enter__(self) -> ConquestSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- internals ---------------------------------------------------------

    def _ensure_permission(self) -> bool:
        if self.location_source.has_permission():
            return True
        return self.location_source.request_permission()

    def _start_feed(self) -> bool:
        if self._feed_active:
            return True
        options = TrackingOptions.from_settings(self.settings)
        started = self.location_source.start_tracking(self.ingest, options)
        self._feed_active = bool(started)
        return self._feed_active

    def _stop_feed(self) -> None:
        if not self._feed_active:
            return
        self._feed_active = False
        self.location_source.stop_tracking()

    def _rollback_start(self) -> None:
        self._stop_feed()
        self._clear()
        self._session_id = None
        self._user_id = None
        self._status = ConquestStatus.IDLE
        self._last_command = None

    def _restore_paused(self, saved: tuple[list[TrackedPoint], float, float]) -> None:
        appended = len(self._points) != len(saved[0])
        self._points, self._total_distance_m, self._total_area_m2 = saved
        self._status = ConquestStatus.PAUSED
        if appended:
            self._notify()

    def _end_cancelled(self, reason: CancelReason) -> None:
        self._points = []
        self._total_distance_m = 0.0
        self._total_area_m2 = 0.0
        self._status = ConquestStatus.CANCELLED
        self._cancel_reason = reason
        self._ended_at = self._clock()

    def _clear(self) -> None:
        # A fresh list, never the previous session's.
        self._points = []
        self._point_ids = itertools.count(1)
        self._total_distance_m = 0.0
        self._total_area_m2 = 0.0
        self._started_at = None
        self._ended_at = None
        self._cancel_reason = None

    def _refuse(self, command: str) -> None:
        logger.warning("Ignoring %s while conquest is %s", command, self._status.value)

    def _notify(self) -> None:
        if not self._observers:
            return
        snap = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception:
                logger.exception("Session observer %r failed", observer)
