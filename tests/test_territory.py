"""Tests for territory construction, validation and the in-memory store."""

from datetime import timedelta

import pytest

from conquest_engine import (
    ConquestController,
    ConquestSettings,
    ConquestStatus,
    InMemoryTerritoryStore,
    TerritoryStatus,
    TerritoryValidationError,
    TrackedPoint,
    build_territory,
    validate_territory,
)

from helpers import SQUARE, T0, TRIANGLE, make_fix, walk


def _points(coords):
    return [TrackedPoint(id=i + 1, session_id="s1", **f.model_dump()) for i, f in enumerate(walk(coords))]


def _territory(coords=SQUARE, area=12_345.0, user_id="user-1"):
    return build_territory(
        _points(coords), area_m2=area, distance_m=400.0, user_id=user_id, session_id="s1",
        started_at=T0, ended_at=T0 + timedelta(minutes=5),
    )


class TestBuildTerritory:
    def test_boundaries_keep_order_and_metadata(self):
        points = _points(SQUARE)
        territory = build_territory(points, area_m2=1.0, distance_m=2.0, user_id="u")
        assert [b.index for b in territory.boundaries] == [0, 1, 2, 3]
        assert [b.timestamp for b in territory.boundaries] == [p.timestamp for p in points]
        assert all(b.accuracy == 5.0 for b in territory.boundaries)

    def test_center_is_mean(self):
        territory = _territory()
        assert territory.center.latitude == pytest.approx(0.0005)
        assert territory.center.longitude == pytest.approx(0.0005)

    def test_defaults(self):
        territory = _territory()
        assert territory.status is TerritoryStatus.ACTIVE
        assert territory.name == "Territory 2025-06-01"
        assert territory.description == "Conquered territory with 4 points"
        assert territory.assigned_to == "user-1"
        assert territory.id is None


class TestValidation:
    def test_valid_territory_passes(self):
        validate_territory(_territory())

    def test_zero_area_rejected(self):
        with pytest.raises(TerritoryValidationError) as exc:
            validate_territory(_territory(area=0.0))
        assert "Area must be a positive number" in exc.value.errors

    def test_collects_every_error(self):
        territory = _territory().model_copy(update={"name": "x", "description": "abc", "boundaries": []})
        with pytest.raises(TerritoryValidationError) as exc:
            validate_territory(territory)
        assert len(exc.value.errors) == 3


class TestInMemoryStore:
    def test_create_assigns_id_and_timestamp(self):
        store = InMemoryTerritoryStore()
        stored = store.create(_territory())
        assert stored.id.startswith("territory_")
        assert stored.created_at is not None
        assert store.get(stored.id) == stored

    def test_create_rejects_invalid(self):
        store = InMemoryTerritoryStore()
        with pytest.raises(TerritoryValidationError):
            store.create(_territory(area=-1))
        assert store.list_all() == []

    def test_list_for_user(self):
        store = InMemoryTerritoryStore()
        store.create(_territory(user_id="a"))
        store.create(_territory(user_id="b"))
        store.create(_territory(user_id="a"))
        assert len(store.list_for_user("a")) == 2
        assert len(store.list_for_user("c")) == 0
        assert len(store.list_all()) == 3


class TestController:
    def test_one_session_per_user(self):
        controller = ConquestController()
        assert controller.get("a") is controller.get("a")
        assert controller.get("a").session is not controller.get("b").session

    def test_complete_persists_territory(self):
        controller = ConquestController(ConquestSettings())
        conquest = controller.get("user-1")
        conquest.session.start("user-1")
        for fix in walk(TRIANGLE):
            conquest.source.deliver(fix)
        result = controller.complete("user-1")
        assert result.snapshot.status is ConquestStatus.COMPLETED
        assert result.territory.id is not None
        assert controller.store.list_for_user("user-1") == [result.territory]

    def test_insufficient_points_returns_no_territory(self):
        controller = ConquestController()
        conquest = controller.get("user-1")
        conquest.session.start("user-1")
        conquest.source.deliver(make_fix(0, 0))
        result = controller.complete("user-1")
        assert result.territory is None
        assert result.snapshot.status is ConquestStatus.CANCELLED
        assert controller.store.list_all() == []

    def test_complete_illegal_returns_none(self):
        controller = ConquestController()
        assert controller.complete("nobody") is None

    def test_store_failure_leaves_session_completed(self):
        controller = ConquestController()
        conquest = controller.get("user-1")
        conquest.session.start("user-1")
        # Collinear walk: three points but zero area.
        for fix in walk([(0.0, 0.0), (0.0, 0.001), (0.0, 0.002)]):
            conquest.source.deliver(fix)
        with pytest.raises(TerritoryValidationError):
            controller.complete("user-1")
        assert conquest.session.status is ConquestStatus.COMPLETED

    def test_close_all_stops_feeds(self):
        controller = ConquestController()
        for user in ("a", "b"):
            controller.get(user).session.start(user)
        controller.close_all()
        assert not controller.get("a").source.is_tracking
        assert not controller.get("b").source.is_tracking
