"""Game state aggregate: the one object every system reads and mutates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from rampage.models.building import BuildingDefinition, BuildingInstance
from rampage.models.combat import CombatState
from rampage.models.player import BuilderCounts, PlayerState

if TYPE_CHECKING:
    from rampage.loaders.game_config_loader import GameConfig


@dataclass
class SpecialEffectsState:
    """Clock and counters behind the cooldown-gated special effects.

    Attributes:
        clock_ms: Simulated milliseconds elapsed since the state was created.
            Cooldowns compare against this clock, never wall time, so
            replays are deterministic.
        last_scrap_find_ms: Clock value of the last scrap-find trigger;
            ``None`` until the first one.
    """

    clock_ms: float = 0.0
    last_scrap_find_ms: Optional[float] = None
    waves_extended: int = 0


@dataclass
class GameState:
    """Complete state of one game.

    Attributes:
        player: Currencies, builders, prestige and boosts.
        buildings: Building instances in catalog order.
        combat: Current enemy and timer.
        current_wave: Wave being fought.
        special_effects: Special-effect clock and counters.
    """

    player: PlayerState = field(default_factory=PlayerState)
    buildings: list[BuildingInstance] = field(default_factory=list)
    combat: CombatState = field(default_factory=CombatState)
    current_wave: int = 1
    special_effects: SpecialEffectsState = field(default_factory=SpecialEffectsState)

    # -- Lookups ---------------------------------------------------------

    def get_building(self, building_id: str) -> Optional[BuildingInstance]:
        """Look up a building by instance id or type id."""
        for building in self.buildings:
            if building.id == building_id:
                return building
        for building in self.buildings:
            if building.type_id == building_id:
                return building
        return None

    @property
    def assigned_total(self) -> int:
        return sum(b.assigned_builders for b in self.buildings)


def create_building_instances(
    definitions: Iterable[BuildingDefinition], wave: int = 1,
) -> list[BuildingInstance]:
    """One instance per catalog building, unlocked by ``wave``."""
    return [
        BuildingInstance(
            id=f"{d.id}_1",
            type_id=d.id,
            is_unlocked=d.unlock_wave <= wave,
        )
        for d in definitions
    ]


def create_initial_state(
    definitions: Iterable[BuildingDefinition],
    config: GameConfig | None = None,
) -> GameState:
    """Build a fresh game for a new player."""
    from rampage.loaders.game_config_loader import GameConfig

    cfg = config or GameConfig()
    start = cfg.starting
    player = PlayerState(
        scrap=float(start.scrap),
        highest_wave=start.wave,
        builders=BuilderCounts(
            total=start.builders,
            available=start.builders,
            max_builders=start.max_builders,
        ),
    )
    combat = CombatState(
        wave_timer_max=cfg.base_wave_timer,
        burst_chance=cfg.combat.burst_chance,
        burst_multiplier=cfg.combat.burst_multiplier,
        base_tap_damage=cfg.combat.base_tap_damage,
    )
    return GameState(
        player=player,
        buildings=create_building_instances(definitions, start.wave),
        combat=combat,
        current_wave=start.wave,
    )
