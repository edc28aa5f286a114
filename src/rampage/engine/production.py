"""Production system: per-building scrap output and utility bonuses.

Responsibilities:
- Scrap output of production buildings, with fractional carry per tick
- Utility building outputs (command center, engineering bay, salvage
  yard, shield generator)
- Building upgrade costs
- Offline production batch

Builder allocation is read here, never changed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from rampage.engine.worker_efficiency import effective_workers
from rampage.models.building import BuildingRole

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.building import BuildingDefinition, BuildingInstance
    from rampage.models.game_state import GameState

log = logging.getLogger(__name__)

COMMAND_CENTER = "command_center"
ENGINEERING_BAY = "engineering_bay"
SALVAGE_YARD = "salvage_yard"
SHIELD_GENERATOR = "shield_generator"


@dataclass(frozen=True)
class ProductionBonuses:
    """Multipliers applied on top of a building's own output.

    All default to neutral so a bare ``ProductionBonuses()`` yields the
    building's raw output.
    """

    wave_bonus: float = 1.0
    prestige_multiplier: float = 1.0
    boost_multiplier: float = 1.0
    command_center_bonus: float = 1.0
    tier_multiplier: float = 1.0
    synergy_multiplier: float = 1.0

    @property
    def combined(self) -> float:
        return (self.wave_bonus * self.prestige_multiplier * self.boost_multiplier
                * self.command_center_bonus * self.tier_multiplier * self.synergy_multiplier)


@dataclass
class ProductionTickResult:
    """Whole scrap produced during one tick."""

    total: int = 0
    per_building: dict[str, int] = field(default_factory=dict)


# -- Pure formulas -------------------------------------------------------

def calculate_upgrade_cost(base_cost: float, cost_multiplier: float, level: int) -> int:
    """Cost to upgrade from ``level``: ``floor(base * mult^(level - 1))``."""
    return int(math.floor(base_cost * cost_multiplier ** (max(1, level) - 1)))


def calculate_offline_production(
    production_per_second: float,
    elapsed_seconds: float,
    max_offline_seconds: float = 8 * 3600.0,
    efficiency: float = 0.5,
) -> int:
    """Batch estimate for time spent away; no tick is simulated."""
    if elapsed_seconds <= 0 or production_per_second <= 0:
        return 0
    seconds = min(elapsed_seconds, max_offline_seconds)
    return int(math.floor(production_per_second * seconds * efficiency))


class ProductionSystem:
    """Computes building output from efficiency, level, tier and bonuses.

    Args:
        catalog: Building definitions.
        game_config: Balance constants; defaults when omitted.
    """

    def __init__(self, catalog: Catalog, game_config: GameConfig | None = None) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()

    # -- Formulas --------------------------------------------------------

    def level_multiplier(self, level: int) -> float:
        """Flat bonus per level above 1."""
        return 1.0 + (max(1, level) - 1) * self._config.level_production_bonus

    def wave_bonus(self, wave: int) -> float:
        return 1.0 + math.log10(max(0, wave) + 1) * self._config.wave_bonus_factor

    def calculate_production(
        self,
        base_production: float,
        level: int,
        assigned: int,
        include_passive: bool = True,
        bonuses: ProductionBonuses | None = None,
    ) -> float:
        """Output per second for raw building numbers."""
        workers = effective_workers(assigned, include_passive, self._config.efficiency)
        if workers <= 0:
            return 0.0
        bonuses = bonuses or ProductionBonuses()
        return base_production * self.level_multiplier(level) * workers * bonuses.combined

    def building_output(
        self,
        building: BuildingInstance,
        bonuses: ProductionBonuses | None = None,
        include_passive: Optional[bool] = None,
    ) -> float:
        """Output per second of one building instance.

        Production buildings count the passive baseline; every other role
        only counts assigned workers unless ``include_passive`` says otherwise.
        """
        definition = self._catalog.get_building(building.type_id)
        if definition is None or not building.is_unlocked:
            return 0.0
        if include_passive is None:
            include_passive = definition.role == BuildingRole.PRODUCTION
        tier = definition.get_tier(building.evolution_tier)
        return self.calculate_production(
            tier.base_production, building.level, building.assigned_builders,
            include_passive, bonuses,
        )

    # -- Utility outputs -------------------------------------------------

    def _utility_sum(self, state: GameState, type_id: str) -> float:
        return sum(
            self.building_output(b)
            for b in state.buildings
            if b.type_id == type_id
        )

    def command_center_bonus(self, state: GameState) -> float:
        """Global production multiplier from command center output."""
        return 1.0 + self._utility_sum(state, COMMAND_CENTER)

    def engineering_discount(self, state: GameState) -> float:
        """Fractional upgrade-cost reduction, capped."""
        return min(self._config.max_engineering_discount, self._utility_sum(state, ENGINEERING_BAY))

    def salvage_bonus(self, state: GameState) -> float:
        """Additive share of extra wave-completion scrap, capped."""
        return min(self._config.max_salvage_bonus, self._utility_sum(state, SALVAGE_YARD))

    def shield_bonus_seconds(self, state: GameState) -> float:
        """Flat seconds added to every wave timer by shield generators."""
        total = 0.0
        for building in state.buildings:
            if building.type_id != SHIELD_GENERATOR or not building.is_unlocked:
                continue
            definition = self._catalog.get_building(building.type_id)
            if definition is None:
                continue
            base = definition.get_tier(building.evolution_tier).base_production
            total += base + (building.level - 1) * self._config.shield_bonus_per_level
        return min(self._config.shield_max_bonus_seconds, total)

    # -- Upgrade cost ----------------------------------------------------

    def upgrade_cost(self, state: GameState, building: BuildingInstance,
                     upgrade_speed: float = 1.0) -> Optional[int]:
        """Scrap needed to raise ``building`` one level, after discounts."""
        definition = self._catalog.get_building(building.type_id)
        if definition is None:
            return None
        tier = definition.get_tier(building.evolution_tier)
        raw = calculate_upgrade_cost(tier.base_cost, definition.cost_multiplier, building.level)
        discounted = raw * (1.0 - self.engineering_discount(state)) / max(1.0, upgrade_speed)
        return max(1, int(math.floor(discounted)))

    # -- Tick ------------------------------------------------------------

    def production_buildings(self, state: GameState) -> list[tuple[BuildingInstance, BuildingDefinition]]:
        result = []
        for building in state.buildings:
            definition = self._catalog.get_building(building.type_id)
            if definition is not None and definition.role == BuildingRole.PRODUCTION:
                result.append((building, definition))
        return result

    def production_per_second(self, state: GameState,
                              bonuses: ProductionBonuses | None = None) -> dict[str, float]:
        """Output per second for every production building, keyed by instance id."""
        return {
            building.id: self.building_output(building, bonuses)
            for building, _ in self.production_buildings(state)
        }

    def total_per_second(self, state: GameState, bonuses: ProductionBonuses | None = None) -> float:
        return sum(self.production_per_second(state, bonuses).values())

    def tick(self, state: GameState, bonuses: ProductionBonuses, delta_ms: float) -> ProductionTickResult:
        """Advance every production accumulator by ``delta_ms``.

        Only whole units leave the accumulator; the fractional remainder
        stays on the building for the next tick.
        """
        result = ProductionTickResult()
        if delta_ms <= 0:
            return result
        seconds = delta_ms / 1000.0
        for building, _ in self.production_buildings(state):
            output = self.building_output(building, bonuses)
            if output <= 0:
                continue
            building.production_progress += output * seconds
            whole = int(math.floor(building.production_progress))
            if whole > 0:
                building.production_progress -= whole
                result.per_building[building.id] = whole
                result.total += whole
        return result

    def offline_production(self, state: GameState, bonuses: ProductionBonuses,
                           elapsed_seconds: float) -> int:
        return calculate_offline_production(
            self.total_per_second(state, bonuses),
            elapsed_seconds,
            self._config.max_offline_seconds,
            self._config.offline_efficiency,
        )
