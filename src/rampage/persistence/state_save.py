"""State save: serializes a game state to a plain dict and to YAML.

``snapshot_state`` is the in-memory format handed to any storage layer;
``save_state`` writes it to a YAML file next to the server.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Optional

import yaml

from rampage.models.building import BuildingInstance
from rampage.models.enemy import Enemy
from rampage.models.game_state import GameState
from rampage.models.player import PlayerState

log = logging.getLogger(__name__)

# Default path for the state file (relative to working directory)
DEFAULT_STATE_PATH = "state.yaml"

SNAPSHOT_VERSION = 2


# ===================================================================
# Public API
# ===================================================================


def snapshot_state(state: GameState) -> dict[str, Any]:
    """Plain-data snapshot of ``state`` (only dicts, lists and scalars)."""
    return {
        "meta": _serialize_meta(),
        "current_wave": state.current_wave,
        "player": _serialize_player(state.player),
        "buildings": [_serialize_building(b) for b in state.buildings],
        "combat": _serialize_combat(state),
        "special_effects": {
            "clock_ms": state.special_effects.clock_ms,
            "last_scrap_find_ms": state.special_effects.last_scrap_find_ms,
            "waves_extended": state.special_effects.waves_extended,
        },
    }


async def save_state(state: GameState, path: str = DEFAULT_STATE_PATH) -> None:
    """Write a snapshot of ``state`` to a YAML file.

    The file is written to a temporary sibling first and then moved into
    place, so a crash never leaves a half-written save behind.
    """
    snapshot = snapshot_state(state)
    out = Path(path)
    tmp = out.with_suffix(".yaml.tmp")
    try:
        tmp.write_text(
            yaml.dump(snapshot, default_flow_style=False, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        tmp.replace(out)
        log.info("Game state saved to %s (wave %d, %d buildings)",
                 path, state.current_wave, len(state.buildings))
    except Exception:
        log.exception("Failed to save game state to %s", path)
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


# ===================================================================
# Meta
# ===================================================================

def _serialize_meta() -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "saved_at_unix": time.time(),
    }


# ===================================================================
# Player & buildings
# ===================================================================

def _serialize_player(player: PlayerState) -> dict[str, Any]:
    return {
        "scrap": player.scrap,
        "blueprints": player.blueprints,
        "total_blueprints_earned": player.total_blueprints_earned,
        "prestige_count": player.prestige_count,
        "highest_wave": player.highest_wave,
        "builders": {
            "total": player.builders.total,
            "available": player.builders.available,
            "max_builders": player.builders.max_builders,
        },
        "prestige_upgrades": dict(player.prestige_upgrades),
        "active_boosts": [
            {"id": b.id, "multiplier": b.multiplier, "remaining_duration_ms": b.remaining_duration_ms}
            for b in player.active_boosts
        ],
        "builders_purchased": player.builders_purchased,
        "total_taps": player.total_taps,
        "total_enemies_defeated": player.total_enemies_defeated,
        "total_scrap_earned": player.total_scrap_earned,
    }


def _serialize_building(building: BuildingInstance) -> dict[str, Any]:
    return {
        "id": building.id,
        "type_id": building.type_id,
        "level": building.level,
        "assigned_builders": building.assigned_builders,
        "evolution_tier": building.evolution_tier,
        "production_progress": building.production_progress,
        "upgrade_progress": building.upgrade_progress,
        "is_unlocked": building.is_unlocked,
    }


# ===================================================================
# Combat
# ===================================================================

def _serialize_enemy(enemy: Optional[Enemy]) -> Optional[dict[str, Any]]:
    if enemy is None:
        return None
    return {
        "id": enemy.id,
        "tier_id": enemy.tier_id,
        "name": enemy.name,
        "current_health": enemy.current_health,
        "max_health": enemy.max_health,
        "reward": enemy.reward,
        "wave": enemy.wave,
        "is_boss": enemy.is_boss,
        "is_final_boss": enemy.is_final_boss,
    }


def _serialize_combat(state: GameState) -> dict[str, Any]:
    combat = state.combat
    return {
        "is_active": combat.is_active,
        "current_enemy": _serialize_enemy(combat.current_enemy),
        "wave_timer": combat.wave_timer,
        "wave_timer_max": combat.wave_timer_max,
        "burst_chance": combat.burst_chance,
        "burst_multiplier": combat.burst_multiplier,
        "base_tap_damage": combat.base_tap_damage,
        "scrap_progress": combat.scrap_progress,
        "last_hit_source": combat.last_hit_source,
    }
