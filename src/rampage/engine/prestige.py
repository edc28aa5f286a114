"""Prestige system: blueprints, permanent upgrades and the reset.

Invoked only from explicit player actions (purchase, prestige, buy
builder); never from the tick.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

from rampage.models.upgrades import PrestigeEffectType, PrestigeUpgradeDefinition
from rampage.util.events import PrestigeTriggered
from rampage.util.results import ActionResult, fail, ok

if TYPE_CHECKING:
    from rampage.engine.builder_pool import BuilderPool
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.game_state import GameState
    from rampage.util.events import EventBus

log = logging.getLogger(__name__)

STARTING_SCRAP_UPGRADE = "starting_scrap"


@dataclass(frozen=True)
class PrestigeBonuses:
    """All owned prestige upgrades folded into one record.

    Multiplier fields start at 1 and multiply; ``burst_chance_bonus`` and
    ``starting_scrap_bonus`` start at 0 and add.
    """

    production_multiplier: float = 1.0
    auto_damage_multiplier: float = 1.0
    tap_power_multiplier: float = 1.0
    burst_chance_bonus: float = 0.0
    burst_damage_multiplier: float = 1.0
    starting_scrap_bonus: float = 0.0
    wave_rewards_multiplier: float = 1.0


@dataclass(frozen=True)
class UpgradeStatus:
    upgrade: PrestigeUpgradeDefinition
    current_level: int
    next_cost: Optional[int]
    can_afford: bool
    is_maxed: bool
    current_effect: float
    next_effect: Optional[float]


# -- Pure formulas -------------------------------------------------------

def upgrade_cost(definition: PrestigeUpgradeDefinition, level: int) -> int:
    """Blueprints for the next level: ``floor(base * mult^level)``.

    Where flooring would repeat a price (small base costs), the level
    costs one blueprint more than the previous one, so the price always
    rises with level.
    """
    cost = 0
    for lvl in range(max(0, level) + 1):
        raw = int(math.floor(definition.base_cost * definition.cost_multiplier ** lvl))
        cost = raw if lvl == 0 else max(raw, cost + 1)
    return cost


def upgrade_effect(definition: PrestigeUpgradeDefinition, level: int) -> float:
    """Effect at ``level``; the effect kind's neutral value at level 0."""
    if level <= 0:
        return definition.effect_type.neutral
    return definition.base_effect + definition.effect_per_level * level


class PrestigeSystem:
    """Meta-progression rules.

    Args:
        catalog: Prestige upgrades, milestone tiers and rank names.
        game_config: Blueprint and builder-cost constants.
        event_bus: Optional sink for :class:`PrestigeTriggered`.
    """

    def __init__(self, catalog: Catalog, game_config: GameConfig | None = None,
                 event_bus: EventBus | None = None) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()
        self._events = event_bus

    # -- Blueprints ------------------------------------------------------

    @property
    def prestige_requirement(self) -> int:
        return self._config.prestige_min_wave

    def can_prestige(self, wave: int) -> bool:
        return wave >= self._config.prestige_min_wave

    def calculate_blueprints_earned(self, wave: int) -> int:
        """0 below the requirement, then a base amount plus a growing
        per-wave increment for every wave above it."""
        cfg = self._config
        if wave < cfg.prestige_min_wave:
            return 0
        blueprints = cfg.base_blueprints
        for i in range(1, wave - cfg.prestige_min_wave + 1):
            blueprints += int(math.floor(cfg.blueprints_per_wave * cfg.blueprint_wave_scaling ** (i - 1)))
        return blueprints

    def preview_prestige(self, wave: int) -> dict:
        return {
            "can_prestige": self.can_prestige(wave),
            "blueprints_earned": self.calculate_blueprints_earned(wave),
            "requirement": self.prestige_requirement,
        }

    # -- Upgrades --------------------------------------------------------

    def can_afford_upgrade(self, upgrade_id: str, level: int, blueprints: int) -> bool:
        definition = self._catalog.get_prestige_upgrade(upgrade_id)
        if definition is None or level >= definition.max_level:
            return False
        return blueprints >= upgrade_cost(definition, level)

    def purchase_upgrade(self, state: GameState, upgrade_id: str) -> ActionResult:
        """Buy one level of a prestige upgrade. Nothing changes on failure."""
        player = state.player
        definition = self._catalog.get_prestige_upgrade(upgrade_id)
        if definition is None:
            return fail(f"Unknown upgrade: {upgrade_id}")
        level = player.upgrade_level(upgrade_id)
        if level >= definition.max_level:
            return fail(f"{definition.name} is already at max level", level=level)
        cost = upgrade_cost(definition, level)
        if player.blueprints < cost:
            return fail(f"Not enough blueprints ({player.blueprints}/{cost})", cost=cost)
        player.blueprints -= cost
        player.prestige_upgrades[upgrade_id] = level + 1
        log.info("Prestige upgrade %s -> level %d (cost %d)", upgrade_id, level + 1, cost)
        return ok(f"{definition.name} upgraded", level=level + 1, cost=cost)

    def calculate_bonuses(self, owned: Mapping[str, int]) -> PrestigeBonuses:
        values = {
            "production_multiplier": 1.0,
            "auto_damage_multiplier": 1.0,
            "tap_power_multiplier": 1.0,
            "burst_chance_bonus": 0.0,
            "burst_damage_multiplier": 1.0,
            "starting_scrap_bonus": 0.0,
            "wave_rewards_multiplier": 1.0,
        }
        for definition in self._catalog.prestige_upgrades.values():
            level = owned.get(definition.id, 0)
            if level <= 0:
                continue
            effect = upgrade_effect(definition, level)
            kind = definition.effect_type
            if kind is PrestigeEffectType.PRODUCTION_MULTIPLIER:
                values["production_multiplier"] *= effect
            elif kind is PrestigeEffectType.AUTO_DAMAGE:
                values["auto_damage_multiplier"] *= effect
            elif kind is PrestigeEffectType.TAP_POWER:
                values["tap_power_multiplier"] *= effect
            elif kind is PrestigeEffectType.BURST_CHANCE:
                values["burst_chance_bonus"] += effect
            elif kind is PrestigeEffectType.BURST_DAMAGE:
                values["burst_damage_multiplier"] *= effect
            elif kind is PrestigeEffectType.STARTING_SCRAP:
                values["starting_scrap_bonus"] += effect
            elif kind is PrestigeEffectType.WAVE_REWARDS:
                values["wave_rewards_multiplier"] *= effect
        return PrestigeBonuses(**values)

    def starting_scrap(self, owned: Mapping[str, int], highest_wave: int) -> int:
        """``floor(highest_wave * per_wave_level * level)`` of the head-start upgrade."""
        level = owned.get(STARTING_SCRAP_UPGRADE, 0)
        if level <= 0:
            return 0
        return int(math.floor(highest_wave * self._config.starting_scrap_per_wave_level * level))

    def upgrade_status(self, blueprints: int, owned: Mapping[str, int]) -> list[UpgradeStatus]:
        statuses = []
        for definition in self._catalog.prestige_upgrades.values():
            level = owned.get(definition.id, 0)
            maxed = level >= definition.max_level
            next_cost = None if maxed else upgrade_cost(definition, level)
            statuses.append(UpgradeStatus(
                upgrade=definition,
                current_level=level,
                next_cost=next_cost,
                can_afford=next_cost is not None and blueprints >= next_cost,
                is_maxed=maxed,
                current_effect=upgrade_effect(definition, level),
                next_effect=None if maxed else upgrade_effect(definition, level + 1),
            ))
        return statuses

    def total_blueprints_spent(self, owned: Mapping[str, int]) -> int:
        total = 0
        for definition in self._catalog.prestige_upgrades.values():
            for level in range(owned.get(definition.id, 0)):
                total += upgrade_cost(definition, level)
        return total

    # -- Rank & milestones -----------------------------------------------

    @staticmethod
    def prestige_level(total_blueprints_earned: int) -> int:
        if total_blueprints_earned < 10:
            return 0
        return int(math.floor(math.log10(total_blueprints_earned)))

    def prestige_rank(self, level: int) -> str:
        ranks = self._catalog.ranks
        if not ranks:
            return ""
        return ranks[min(max(0, level), len(ranks) - 1)]

    def tier_multiplier(self, prestige_count: int) -> float:
        milestone = self._catalog.milestone_for_prestige_count(prestige_count)
        return milestone.multiplier if milestone else 1.0

    # -- Builders --------------------------------------------------------

    def builder_purchase_cost(self, builders_purchased: int) -> int:
        """Blueprint price of the next builder, by how many were bought."""
        for limit, cost in self._config.builder_cost_tiers:
            if limit is None or builders_purchased < limit:
                return int(cost)
        return int(self._config.builder_cost_tiers[-1][1])

    def purchase_builder(self, state: GameState, builder_pool: BuilderPool) -> ActionResult:
        player = state.player
        cost = self.builder_purchase_cost(player.builders_purchased)
        if player.blueprints < cost:
            return fail(f"Not enough blueprints ({player.blueprints}/{cost})", cost=cost)
        added = builder_pool.add_builders(state, 1)
        if not added:
            return added
        player.blueprints -= cost
        player.builders_purchased += 1
        return ok("Builder purchased", cost=cost, total=player.builders.total)

    # -- Reset -----------------------------------------------------------

    def execute_prestige(self, state: GameState, builder_pool: BuilderPool) -> ActionResult:
        """Convert the current run into blueprints and start over at wave 1.

        Kept: blueprints, upgrade levels, builder total, builders bought,
        highest wave. Reset: wave, scrap (to the head-start bonus), every
        building's level/assignment/tier, active boosts, run counters.
        """
        player = state.player
        wave = state.current_wave
        if not self.can_prestige(wave):
            return fail(f"Reach wave {self.prestige_requirement} to prestige", wave=wave)

        earned = self.calculate_blueprints_earned(wave)
        player.highest_wave = max(player.highest_wave, wave)
        player.blueprints += earned
        player.total_blueprints_earned += earned
        player.prestige_count += 1
        player.scrap = float(self.starting_scrap(player.prestige_upgrades, player.highest_wave))
        player.active_boosts = []
        player.total_taps = 0
        player.total_enemies_defeated = 0
        player.total_scrap_earned = 0

        builder_pool.reset_all_assignments(state)
        for building in state.buildings:
            building.reset()
            definition = self._catalog.get_building(building.type_id)
            building.is_unlocked = definition is not None and definition.unlock_wave <= 1

        state.current_wave = 1
        state.combat.is_active = False
        state.combat.current_enemy = None
        state.combat.wave_timer = 0.0
        state.special_effects.last_scrap_find_ms = state.special_effects.clock_ms

        log.info("Prestige #%d at wave %d: +%d blueprints (total %d)",
                 player.prestige_count, wave, earned, player.blueprints)
        if self._events is not None:
            self._events.emit(PrestigeTriggered(
                blueprints_earned=earned,
                prestige_count=player.prestige_count,
                wave_reached=wave,
            ))
        return ok("Prestige complete", blueprints_earned=earned,
                  total_blueprints=player.blueprints, wave_reached=wave)
