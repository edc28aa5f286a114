"""State load: restores a game state from a snapshot dict or YAML file.

Snapshots may come from older versions: missing fields get defaults,
building types no longer in the catalog are dropped, catalog buildings
missing from the snapshot are added, and the builder ledger is rebuilt
so ``sum(assigned) + available == total`` holds after loading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from rampage.models.building import BuildingInstance
from rampage.models.combat import CombatState
from rampage.models.enemy import Enemy
from rampage.models.game_state import GameState, SpecialEffectsState
from rampage.models.player import Boost, BuilderCounts, PlayerState
from rampage.persistence.state_save import DEFAULT_STATE_PATH

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig

log = logging.getLogger(__name__)


# ===================================================================
# Result container
# ===================================================================

@dataclass
class RestoredState:
    """Game state restored from a YAML state file.

    Attributes:
        state: The migrated game state.
        meta: Metadata from the save file (version, save timestamp).
    """

    state: GameState
    meta: dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Public API
# ===================================================================


def restore_state(raw: dict[str, Any], catalog: Catalog,
                  game_config: GameConfig | None = None) -> GameState:
    """Build a valid :class:`GameState` from a (possibly old) snapshot."""
    from rampage.loaders.game_config_loader import GameConfig

    cfg = game_config or GameConfig()
    wave = max(1, int(raw.get("current_wave", 1) or 1))

    player = _deserialize_player(raw.get("player") or {}, cfg)
    player.highest_wave = max(player.highest_wave, wave)
    buildings = _migrate_buildings(raw.get("buildings") or [], catalog, wave)
    _rebuild_builder_ledger(player, buildings)

    state = GameState(
        player=player,
        buildings=buildings,
        combat=_deserialize_combat(raw.get("combat") or {}, cfg),
        current_wave=wave,
        special_effects=_build(SpecialEffectsState, raw.get("special_effects")),
    )
    return state


async def load_state(path: str, catalog: Catalog,
                     game_config: GameConfig | None = None) -> Optional[RestoredState]:
    """Load a game state from a YAML file.

    Returns None if the file does not exist or cannot be parsed; the
    caller starts a fresh game in that case.
    """
    state_file = Path(path or DEFAULT_STATE_PATH)
    if not state_file.exists():
        log.info("No state file found at %s", state_file)
        return None

    try:
        raw = yaml.safe_load(state_file.read_text(encoding="utf-8"))
    except Exception:
        log.exception("Failed to parse state file %s", state_file)
        return None

    if not isinstance(raw, dict):
        log.warning("State file %s has unexpected format (not a dict)", state_file)
        return None

    meta = raw.get("meta") or {}
    log.info("Restoring state from %s (saved at %s, version %s)",
             state_file, meta.get("saved_at", "?"), meta.get("version", "?"))
    return RestoredState(state=restore_state(raw, catalog, game_config), meta=meta)


# ===================================================================
# Helpers
# ===================================================================

def _build(cls: type, raw: object):
    """Instantiate dataclass ``cls`` from the known keys of ``raw``."""
    if not isinstance(raw, dict):
        return cls()
    return cls(**{k: v for k, v in raw.items() if k in cls.__dataclass_fields__})


# ===================================================================
# Player
# ===================================================================

def _deserialize_player(raw: dict[str, Any], cfg: GameConfig) -> PlayerState:
    scalars = {k: v for k, v in raw.items()
               if k in PlayerState.__dataclass_fields__
               and k not in ("builders", "prestige_upgrades", "active_boosts")}
    player = PlayerState(**scalars)

    builders_raw = raw.get("builders")
    if isinstance(builders_raw, dict):
        player.builders = _build(BuilderCounts, builders_raw)
    else:
        player.builders = BuilderCounts(
            total=cfg.starting.builders,
            available=cfg.starting.builders,
            max_builders=cfg.starting.max_builders,
        )

    upgrades = raw.get("prestige_upgrades") or {}
    player.prestige_upgrades = {str(k): int(v) for k, v in upgrades.items() if int(v) > 0}

    boosts = []
    for entry in raw.get("active_boosts") or []:
        try:
            boost = Boost(str(entry["id"]), float(entry["multiplier"]),
                          float(entry["remaining_duration_ms"]))
        except (KeyError, TypeError, ValueError):
            log.warning("Dropping malformed boost: %r", entry)
            continue
        if not boost.expired:
            boosts.append(boost)
    player.active_boosts = boosts
    return player


# ===================================================================
# Buildings
# ===================================================================

def _migrate_buildings(entries: list[Any], catalog: Catalog, wave: int) -> list[BuildingInstance]:
    """One instance per catalog building, in catalog order."""
    by_type: dict[str, BuildingInstance] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        type_id = entry.get("type_id") or _type_from_instance_id(str(entry.get("id", "")))
        definition = catalog.get_building(type_id)
        if definition is None:
            log.warning("Dropping unknown building type from save: %s", type_id)
            continue
        if type_id in by_type:
            log.warning("Dropping duplicate building from save: %s", entry.get("id", type_id))
            continue
        building = _build(BuildingInstance, {**entry, "type_id": type_id,
                                              "id": entry.get("id") or f"{type_id}_1"})
        building.level = max(1, int(building.level))
        building.evolution_tier = min(max(1, int(building.evolution_tier)), len(definition.tiers))
        building.is_unlocked = bool(building.is_unlocked) or definition.unlock_wave <= wave
        cap = 0 if definition.no_workers else definition.max_builders
        building.assigned_builders = min(max(0, int(building.assigned_builders)), cap)
        if not building.is_unlocked:
            building.assigned_builders = 0
        by_type[type_id] = building

    result = []
    for definition in catalog.buildings.values():
        building = by_type.get(definition.id)
        if building is None:
            log.info("Adding building missing from save: %s", definition.id)
            building = BuildingInstance(
                id=f"{definition.id}_1",
                type_id=definition.id,
                is_unlocked=definition.unlock_wave <= wave,
            )
        result.append(building)
    return result


def _type_from_instance_id(instance_id: str) -> str:
    """``scrap_works_1`` -> ``scrap_works``."""
    base, _, suffix = instance_id.rpartition("_")
    return base if base and suffix.isdigit() else instance_id


def _rebuild_builder_ledger(player: PlayerState, buildings: list[BuildingInstance]) -> None:
    builders = player.builders
    assigned = sum(b.assigned_builders for b in buildings)
    builders.total = max(int(builders.total), assigned)
    builders.available = builders.total - assigned


# ===================================================================
# Combat
# ===================================================================

def _deserialize_combat(raw: dict[str, Any], cfg: GameConfig) -> CombatState:
    combat = _build(CombatState, {k: v for k, v in raw.items() if k != "current_enemy"})
    enemy_raw = raw.get("current_enemy")
    enemy = None
    if isinstance(enemy_raw, dict):
        try:
            enemy = _build(Enemy, enemy_raw)
        except TypeError:
            log.warning("Dropping malformed enemy from save: %r", enemy_raw)
    combat.current_enemy = enemy
    combat.is_active = bool(combat.is_active) and enemy is not None
    combat.wave_timer_max = min(max(0.0, float(combat.wave_timer_max)), cfg.wave_timer_ceiling)
    combat.wave_timer = min(max(0.0, float(combat.wave_timer)), combat.wave_timer_max)
    return combat
