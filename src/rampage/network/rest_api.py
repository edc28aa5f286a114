"""REST API: FastAPI application exposing the game session to a UI.

Reads return plain dicts; every action returns the session's
``ActionResult`` as an :class:`ActionResponse`. Failed actions still
answer 200 with ``success: false``; only malformed requests are 4xx.

Usage::

    from rampage.network.rest_api import create_app

    app = create_app(services)
    # Start with uvicorn as an asyncio task alongside the game loop
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rampage.network.rest_models import (
    ActionResponse,
    BoostGrantRequest,
    BuilderGrantRequest,
    OfflineProgressRequest,
    ReassignRequest,
    TapRequest,
)
from rampage.persistence.state_save import snapshot_state

if TYPE_CHECKING:
    from rampage.main import Services
    from rampage.util.results import ActionResult

log = logging.getLogger(__name__)


def _respond(result: ActionResult) -> dict[str, Any]:
    if not result:
        log.debug("Action rejected: %s", result.message)
    return result.to_dict()


def create_app(services: "Services") -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    The ``services`` reference is captured by closure so every endpoint
    can reach the session without global state.
    """
    app = FastAPI(title="Rampage Core", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =================================================================
    # Queries
    # =================================================================

    @app.get("/api/state")
    async def get_state() -> dict[str, Any]:
        return snapshot_state(services.session.state)

    @app.get("/api/derived")
    async def get_derived() -> dict[str, Any]:
        return services.session.derived()

    @app.get("/api/prestige")
    async def get_prestige() -> dict[str, Any]:
        session = services.session
        player = session.state.player
        statuses = session.prestige.upgrade_status(player.blueprints, player.prestige_upgrades)
        level = session.prestige.prestige_level(player.total_blueprints_earned)
        return {
            **session.prestige.preview_prestige(session.state.current_wave),
            "blueprints": player.blueprints,
            "prestige_count": player.prestige_count,
            "prestige_level": level,
            "rank": session.prestige.prestige_rank(level),
            "builder_cost": session.prestige.builder_purchase_cost(player.builders_purchased),
            "upgrades": [
                {
                    "id": s.upgrade.id,
                    "name": s.upgrade.name,
                    "level": s.current_level,
                    "max_level": s.upgrade.max_level,
                    "next_cost": s.next_cost,
                    "can_afford": s.can_afford,
                    "current_effect": s.current_effect,
                    "next_effect": s.next_effect,
                }
                for s in statuses
            ],
        }

    # =================================================================
    # Buildings
    # =================================================================

    @app.post("/api/buildings/reassign", response_model=ActionResponse)
    async def reassign_builder(body: ReassignRequest) -> dict[str, Any]:
        return _respond(services.session.reassign_builder(body.from_id, body.to_id))

    @app.post("/api/buildings/{building_id}/assign", response_model=ActionResponse)
    async def assign_builder(building_id: str) -> dict[str, Any]:
        return _respond(services.session.assign_builder(building_id))

    @app.post("/api/buildings/{building_id}/unassign", response_model=ActionResponse)
    async def unassign_builder(building_id: str) -> dict[str, Any]:
        return _respond(services.session.unassign_builder(building_id))

    @app.post("/api/buildings/{building_id}/upgrade", response_model=ActionResponse)
    async def upgrade_building(building_id: str) -> dict[str, Any]:
        return _respond(services.session.upgrade_building(building_id))

    # =================================================================
    # Combat
    # =================================================================

    @app.post("/api/tap", response_model=ActionResponse)
    async def tap(body: Optional[TapRequest] = None) -> dict[str, Any]:
        on_weak_point = body.on_weak_point if body is not None else False
        return _respond(services.session.tap(on_weak_point))

    # =================================================================
    # Prestige
    # =================================================================

    @app.post("/api/prestige", response_model=ActionResponse)
    async def execute_prestige() -> dict[str, Any]:
        return _respond(services.session.execute_prestige())

    @app.post("/api/prestige/upgrades/{upgrade_id}", response_model=ActionResponse)
    async def purchase_upgrade(upgrade_id: str) -> dict[str, Any]:
        return _respond(services.session.purchase_upgrade(upgrade_id))

    @app.post("/api/builders/purchase", response_model=ActionResponse)
    async def purchase_builder() -> dict[str, Any]:
        return _respond(services.session.purchase_builder())

    # =================================================================
    # Grants (purchase layer)
    # =================================================================

    @app.post("/api/grants/builders", response_model=ActionResponse)
    async def grant_builders(body: BuilderGrantRequest) -> dict[str, Any]:
        return _respond(services.session.grant_builders(body.count))

    @app.post("/api/grants/boost", response_model=ActionResponse)
    async def grant_boost(body: BoostGrantRequest) -> dict[str, Any]:
        return _respond(services.session.apply_boost(body.multiplier, body.duration_ms, body.boost_id))

    @app.post("/api/offline", response_model=ActionResponse)
    async def offline_progress(body: OfflineProgressRequest) -> dict[str, Any]:
        return _respond(services.session.apply_offline_progress(body.elapsed_seconds))

    return app
