"""Location source interface and an in-process push implementation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from .models import RawFix, TrackingOptions

logger = logging.getLogger(__name__)

FixCallback = Callable[[RawFix], None]


class LocationSource(Protocol):
    """Push-stream of raw fixes with permission and feed control."""

    def has_permission(self) -> bool: ...

    def request_permission(self) -> bool: ...

    def start_tracking(self, on_fix: FixCallback, options: TrackingOptions) -> bool: ...

    def stop_tracking(self) -> None: ...


class PushLocationSource:
    """LocationSource fed by explicit ``deliver`` calls.

    Used where fixes arrive from outside the process (e.g. posted by a client
    over HTTP) and need to be routed to whichever consumer is subscribed.
    Fixes delivered while no subscription is active are dropped.
    """

    def __init__(
        self,
        *,
        permission_granted: bool = True,
        grant_on_request: bool = True,
        available: bool = True,
    ):
        self.permission_granted = permission_granted
        self.grant_on_request = grant_on_request
        self.available = available
        self.options: TrackingOptions | None = None
        self.start_count = 0
        self.stop_count = 0
        self._on_fix: FixCallback | None = None
        self._lock = threading.Lock()

    @property
    def is_tracking(self) -> bool:
        return self._on_fix is not None

    def has_permission(self) -> bool:
        return self.permission_granted

    def request_permission(self) -> bool:
        if self.grant_on_request:
            self.permission_granted = True
        return self.permission_granted

    def start_tracking(self, on_fix: FixCallback, options: TrackingOptions) -> bool:
        if not self.available:
            logger.warning("Location provider unavailable, tracking not started")
            return False
        with self._lock:
            self._on_fix = on_fix
            self.options = options
            self.start_count += 1
        return True

    def stop_tracking(self) -> None:
        with self._lock:
            if self._on_fix is not None:
                self.stop_count += 1
            self._on_fix = None

    def deliver(self, fix: RawFix) -> bool:
        """Push a fix to the active subscriber. Returns False if nobody is listening."""
        with self._lock:
            on_fix = self._on_fix
        if on_fix is None:
            logger.debug("Dropping fix at %s: no active subscription", fix.timestamp)
            return False
        on_fix(fix)
        return True
