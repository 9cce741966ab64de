"""FastAPI adapter exposing conquest sessions to a client application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import Settings, settings as default_settings
from .controller import ConquestController
from .models import ConquestStatus, GeoPoint, RawFix, SessionSnapshot, Territory
from .territory import TerritoryValidationError

logger = logging.getLogger(__name__)


class FixResponse(BaseModel):
    delivered: bool
    snapshot: SessionSnapshot


class PointResponse(BaseModel):
    accepted: bool
    snapshot: SessionSnapshot


class CompletionResponse(BaseModel):
    snapshot: SessionSnapshot
    territory: Territory | None = None


def create_app(settings: Settings | None = None, controller: ConquestController | None = None) -> FastAPI:
    settings = settings or default_settings
    controller = controller or ConquestController(settings.conquest_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        controller.close_all()

    app = FastAPI(title="Conquest Tracking Engine", version="0.1.0", lifespan=lifespan)
    app.state.controller = controller

    def _refused(command: str, user_id: str) -> HTTPException:
        status = controller.get(user_id).session.status.value
        return HTTPException(status_code=409, detail=f"Cannot {command} while conquest is {status}")

    @app.get("/sessions/{user_id}")
    async def get_session(user_id: str) -> SessionSnapshot:
        return controller.get(user_id).session.snapshot()

    @app.post("/sessions/{user_id}/start")
    async def start_session(user_id: str) -> SessionSnapshot:
        """Start tracking. 409 if already active, permission denied or the feed failed."""
        session = controller.get(user_id).session
        if not session.start(user_id):
            raise _refused("start", user_id)
        return session.snapshot()

    @app.post("/sessions/{user_id}/fixes")
    async def push_fix(user_id: str, fix: RawFix) -> FixResponse:
        """Deliver a raw fix through the user's location feed.

        ``delivered`` is False when no feed is active (paused or not started).
        """
        conquest = controller.get(user_id)
        delivered = conquest.source.deliver(fix)
        return FixResponse(delivered=delivered, snapshot=conquest.session.snapshot())

    @app.post("/sessions/{user_id}/points")
    async def add_manual_point(user_id: str, point: GeoPoint) -> PointResponse:
        """Add a point at the current time. ``accepted`` is False when the sample filter drops it."""
        session = controller.get(user_id).session
        if session.status is not ConquestStatus.TRACKING:
            raise _refused("add a point", user_id)
        accepted = session.add_manual_point(point.latitude, point.longitude)
        return PointResponse(accepted=accepted, snapshot=session.snapshot())

    @app.post("/sessions/{user_id}/pause")
    async def pause_session(user_id: str) -> SessionSnapshot:
        session = controller.get(user_id).session
        if not session.pause():
            raise _refused("pause", user_id)
        return session.snapshot()

    @app.post("/sessions/{user_id}/resume")
    async def resume_session(user_id: str) -> SessionSnapshot:
        session = controller.get(user_id).session
        if not session.resume():
            raise _refused("resume", user_id)
        return session.snapshot()

    @app.post("/sessions/{user_id}/cancel")
    async def cancel_session(user_id: str) -> SessionSnapshot:
        session = controller.get(user_id).session
        if not session.cancel():
            raise _refused("cancel", user_id)
        return session.snapshot()

    @app.post("/sessions/{user_id}/reset")
    async def reset_session(user_id: str) -> SessionSnapshot:
        session = controller.get(user_id).session
        if not session.reset():
            raise _refused("reset", user_id)
        return session.snapshot()

    @app.post("/sessions/{user_id}/complete")
    async def complete_session(user_id: str) -> CompletionResponse:
        """Complete the conquest and store the territory.

        ``territory`` is null when the session was cancelled for having too
        few points.
        """
        try:
            result = controller.complete(user_id)
        except TerritoryValidationError as exc:
            logger.warning("Territory for %s rejected by store: %s", user_id, exc)
            raise HTTPException(status_code=422, detail=exc.errors) from exc
        if result is None:
            raise _refused("complete", user_id)
        return CompletionResponse(snapshot=result.snapshot, territory=result.territory)

    @app.get("/territories")
    async def list_territories(user_id: str | None = None) -> list[Territory]:
        if user_id is None:
            return controller.store.list_all()
        return controller.store.list_for_user(user_id)

    return app


app = create_app()
