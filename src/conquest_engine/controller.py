"""Per-user ownership of conquest sessions and territory hand-off."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .location import PushLocationSource
from .models import ConquestSettings, ConquestStatus, SessionSnapshot, Territory
from .session import ConquestSession
from .territory import InMemoryTerritoryStore, TerritoryStore

logger = logging.getLogger(__name__)


@dataclass
class UserConquest:
    """A user's session together with the feed that drives it."""

    session: ConquestSession
    source: PushLocationSource


@dataclass
class CompletionResult:
    snapshot: SessionSnapshot
    territory: Territory | None = None


class ConquestController:
    """Creates one session per user and forwards completed territories to a store."""

    def __init__(
        self,
        settings: ConquestSettings | None = None,
        store: TerritoryStore | None = None,
    ):
        self.settings = settings or ConquestSettings()
        self.store = store if store is not None else InMemoryTerritoryStore()
        self._conquests: dict[str, UserConquest] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> UserConquest:
        """Return the user's conquest, creating an idle one on first use."""
        with self._lock:
            conquest = self._conquests.get(user_id)
            if conquest is None:
                source = PushLocationSource()
                conquest = UserConquest(
                    session=ConquestSession(source, self.settings),
                    source=source,
                )
                self._conquests[user_id] = conquest
            return conquest

    def complete(self, user_id: str) -> CompletionResult | None:
        """Complete the user's session and persist the territory it produced.

        Returns None if ``complete`` was not legal in the current state. The
        session has already committed to ``completed`` when the store is
        called, so a store failure propagates without undoing it.
        """
        session = self.get(user_id).session
        was_active = session.status in (ConquestStatus.TRACKING, ConquestStatus.PAUSED)
        territory = session.complete()
        snapshot = session.snapshot()
        if territory is None:
            if not was_active or snapshot.status is not ConquestStatus.CANCELLED:
                logger.warning("No active conquest to complete for %s", user_id)
                return None
            return CompletionResult(snapshot=snapshot)

        stored = self.store.create(territory)
        return CompletionResult(snapshot=snapshot, territory=stored)

    def close_all(self) -> None:
        """Stop every active location feed."""
        with self._lock:
            conquests = list(self._conquests.values())
        for conquest in conquests:
            conquest.session.close()
        logger.info("Closed %d conquest session(s)", len(conquests))
