"""Tests for the REST API.

Uses httpx AsyncClient with an ASGI transport to exercise the endpoints
end-to-end without starting a real server.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from rampage.engine.catalog import Catalog
from rampage.engine.game_session import GameSession
from rampage.loaders.catalog_loader import load_catalogs
from rampage.loaders.game_config_loader import GameConfig
from rampage.network.rest_api import create_app

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _make_services() -> Any:
    """Create a minimal Services-like object around a real session."""
    catalog = Catalog(load_catalogs(CONFIG_DIR))
    svc = MagicMock()
    svc.session = GameSession(catalog, GameConfig(), rng=random.Random(5))
    return svc


@pytest.fixture
def services():
    return _make_services()


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestQueries:
    async def test_state(self, client):
        resp = await client.get("/api/state")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_wave"] == 1
        assert data["player"]["scrap"] == 100
        assert len(data["buildings"]) == 8

    async def test_derived(self, client, services):
        services.session.tick(100)
        resp = await client.get("/api/derived")
        assert resp.status_code == 200
        data = resp.json()
        assert data["wave"] == 1
        assert data["enemy"]["max_health"] == 100

    async def test_prestige(self, client):
        resp = await client.get("/api/prestige")
        assert resp.status_code == 200
        data = resp.json()
        assert data["can_prestige"] is False
        assert data["requirement"] == 100
        assert data["builder_cost"] == 30
        assert data["rank"] == "Rookie"
        assert {u["id"] for u in data["upgrades"]} >= {"production_boost", "tap_power"}


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class TestBuildingActions:
    async def test_assign_and_unassign(self, client, services):
        resp = await client.post("/api/buildings/scrap_works/assign")
        assert resp.json() == {"success": True, "message": "Assigned builder to scrap_works_1",
                               "data": {"assigned": 1}}
        assert services.session.state.player.builders.available == 4
        resp = await client.post("/api/buildings/scrap_works/unassign")
        assert resp.json()["success"] is True
        assert services.session.state.player.builders.available == 5

    async def test_failed_action_is_200(self, client):
        resp = await client.post("/api/buildings/turret_station/assign")
        assert resp.status_code == 200
        assert resp.json()["success"] is False

    async def test_reassign(self, client, services):
        services.session.state.get_building("turret_station").is_unlocked = True
        await client.post("/api/buildings/scrap_works/assign")
        resp = await client.post("/api/buildings/reassign",
                                 json={"from_id": "scrap_works", "to_id": "turret_station"})
        assert resp.json()["success"] is True
        assert services.session.state.get_building("turret_station").assigned_builders == 1

    async def test_reassign_requires_body(self, client):
        resp = await client.post("/api/buildings/reassign", json={"from_id": "scrap_works"})
        assert resp.status_code == 422

    async def test_upgrade(self, client, services):
        resp = await client.post("/api/buildings/scrap_works/upgrade")
        assert resp.json()["data"] == {"level": 2, "cost": 10}
        assert services.session.state.player.scrap == 90


class TestCombatActions:
    async def test_tap_without_body(self, client, services):
        resp = await client.post("/api/tap")
        data = resp.json()
        assert data["success"] is True
        assert 4 <= data["data"]["damage"] <= 5
        assert services.session.state.player.total_taps == 1

    async def test_tap_on_weak_point(self, client):
        resp = await client.post("/api/tap", json={"on_weak_point": True})
        data = resp.json()["data"]
        assert data["is_weak_point"] is True
        assert data["damage"] >= 6


class TestPrestigeActions:
    async def test_prestige_too_early(self, client):
        resp = await client.post("/api/prestige")
        assert resp.json()["success"] is False

    async def test_prestige_and_buy_upgrade(self, client, services):
        services.session.state.current_wave = 100
        resp = await client.post("/api/prestige")
        assert resp.json()["data"]["blueprints_earned"] == 100
        resp = await client.post("/api/prestige/upgrades/production_boost")
        assert resp.json()["data"] == {"level": 1, "cost": 1}

    async def test_purchase_builder(self, client, services):
        services.session.state.player.blueprints = 30
        resp = await client.post("/api/builders/purchase")
        assert resp.json()["success"] is True
        assert services.session.state.player.builders.total == 6


class TestGrants:
    async def test_grant_builders(self, client, services):
        resp = await client.post("/api/grants/builders", json={"count": 3})
        assert resp.json()["data"]["total"] == 8

    async def test_grant_builders_validates(self, client):
        resp = await client.post("/api/grants/builders", json={"count": 0})
        assert resp.status_code == 422

    async def test_grant_boost(self, client, services):
        resp = await client.post("/api/grants/boost", json={"multiplier": 2, "duration_ms": 30000})
        assert resp.json()["success"] is True
        assert services.session.boost_multiplier() == 2.0

    async def test_grant_boost_validates(self, client):
        resp = await client.post("/api/grants/boost", json={"multiplier": 0, "duration_ms": 30000})
        assert resp.status_code == 422

    async def test_offline_progress(self, client, services):
        resp = await client.post("/api/offline", json={"elapsed_seconds": 100})
        assert resp.json()["data"]["amount"] == 57
        assert services.session.state.player.scrap == 157
