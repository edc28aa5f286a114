"""Special effects: building-gated bonuses.

Four effects, each owned by one building type and active only while the
building is unlocked and its current tier names the effect:

- scrap_find: cooldown-gated bonus scrap
- burst_boost: extra burst chance, summed across buildings and capped
- critical_weakness: chance for a weak-point hit to use a large flat
  multiplier
- wave_extend: chance to add seconds to a new wave timer

All rolls go through the injected ``random.Random``.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from rampage.models.building import SpecialEffectType
from rampage.util import constants as C

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.engine.prestige import PrestigeBonuses
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.building import BuildingInstance
    from rampage.models.game_state import GameState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrapFindResult:
    triggered: bool
    amount: int = 0
    building_id: str = ""
    cooldown_ms: float = 0.0


@dataclass(frozen=True)
class RollResult:
    """Outcome of a chance roll; ``value`` is effect specific."""
    triggered: bool
    chance: float = 0.0
    value: float = 0.0


# -- Pure formulas -------------------------------------------------------

def scrap_find_cooldown(level: int, assigned: int) -> float:
    cooldown = (C.SCRAP_FIND_BASE_COOLDOWN_MS
                - (level - 1) * C.SCRAP_FIND_COOLDOWN_PER_LEVEL_MS
                - assigned * C.SCRAP_FIND_COOLDOWN_PER_WORKER_MS)
    return max(C.SCRAP_FIND_MIN_COOLDOWN_MS, cooldown)


def scrap_find_amount(wave_reward: float, tier: int,
                      prestige_production: float = 1.0, prestige_wave_rewards: float = 1.0) -> int:
    index = min(max(tier, 1), len(C.SCRAP_FIND_TIER_MULTIPLIERS)) - 1
    return int(math.floor(wave_reward * C.SCRAP_FIND_REWARD_PERCENT
                          * C.SCRAP_FIND_TIER_MULTIPLIERS[index]
                          * prestige_production * prestige_wave_rewards))


def burst_boost(level: int, assigned: int, tier: int) -> float:
    boost = (C.BURST_BOOST_BASE
             + (level - 1) * C.BURST_BOOST_PER_LEVEL
             + assigned * C.BURST_BOOST_PER_WORKER
             + (tier - 1) * C.BURST_BOOST_PER_TIER)
    return min(C.BURST_BOOST_MAX, boost)


def critical_weakness_chance(level: int, assigned: int, tier: int) -> float:
    chance = (C.CRITICAL_WEAKNESS_BASE_CHANCE
              + (level - 1) * C.CRITICAL_WEAKNESS_PER_LEVEL
              + assigned * C.CRITICAL_WEAKNESS_PER_WORKER
              + (tier - 1) * C.CRITICAL_WEAKNESS_PER_TIER)
    return min(C.CRITICAL_WEAKNESS_MAX_CHANCE, chance)


def wave_extend_chance(level: int, tier: int) -> float:
    chance = (C.WAVE_EXTEND_BASE_CHANCE
              + (level - 1) * C.WAVE_EXTEND_PER_LEVEL
              + (tier - 1) * C.WAVE_EXTEND_PER_TIER)
    return min(C.WAVE_EXTEND_MAX_CHANCE, chance)


def wave_extend_bonus(base_timer: float) -> float:
    return min(C.WAVE_EXTEND_MAX_SECONDS, base_timer * C.WAVE_EXTEND_BONUS_PERCENT)


class SpecialEffectsSystem:
    """Evaluates the special effects of eligible buildings.

    Args:
        catalog: Building definitions (tiers and their special effects).
        game_config: Critical-weakness multiplier.
        rng: Random source for every roll.
    """

    def __init__(self, catalog: Catalog, game_config: GameConfig | None = None,
                 rng: random.Random | None = None) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()
        self._rng = rng or random.Random()

    def eligible_buildings(self, state: GameState, effect: SpecialEffectType) -> list[BuildingInstance]:
        """Unlocked buildings whose current tier defines ``effect``."""
        result = []
        for building in state.buildings:
            if not building.is_unlocked:
                continue
            definition = self._catalog.get_building(building.type_id)
            if definition is None:
                continue
            if definition.get_tier(building.evolution_tier).special_effect is effect:
                result.append(building)
        return result

    # -- Scrap find ------------------------------------------------------

    def process_scrap_find(self, state: GameState, wave_reward: float,
                           prestige: Optional[PrestigeBonuses] = None) -> ScrapFindResult:
        """Pay a scrap find if the cooldown has elapsed on the simulated clock."""
        buildings = self.eligible_buildings(state, SpecialEffectType.SCRAP_FIND)
        if not buildings or wave_reward <= 0:
            return ScrapFindResult(False)
        building = buildings[0]
        effects = state.special_effects
        cooldown = scrap_find_cooldown(building.level, building.assigned_builders)
        last = effects.last_scrap_find_ms if effects.last_scrap_find_ms is not None else 0.0
        if effects.clock_ms - last < cooldown:
            return ScrapFindResult(False, cooldown_ms=cooldown)
        amount = scrap_find_amount(
            wave_reward, building.evolution_tier,
            prestige.production_multiplier if prestige else 1.0,
            prestige.wave_rewards_multiplier if prestige else 1.0,
        )
        effects.last_scrap_find_ms = effects.clock_ms
        log.debug("Scrap find on %s: %d (cooldown %.0f ms)", building.id, amount, cooldown)
        return ScrapFindResult(amount > 0, amount, building.id, cooldown)

    # -- Burst boost -----------------------------------------------------

    def total_burst_boost(self, state: GameState) -> float:
        total = sum(
            burst_boost(b.level, b.assigned_builders, b.evolution_tier)
            for b in self.eligible_buildings(state, SpecialEffectType.BURST_BOOST)
        )
        return min(C.BURST_BOOST_MAX, total)

    # -- Critical weakness -----------------------------------------------

    def roll_critical_weakness(self, state: GameState) -> RollResult:
        """Roll once per weak-point hit; ``value`` is the damage multiplier."""
        buildings = self.eligible_buildings(state, SpecialEffectType.CRITICAL_WEAKNESS)
        if not buildings:
            return RollResult(False)
        best = max(critical_weakness_chance(b.level, b.assigned_builders, b.evolution_tier)
                   for b in buildings)
        triggered = self._rng.random() < best
        multiplier = self._config.combat.critical_weakness_multiplier
        return RollResult(triggered, best, multiplier if triggered else 1.0)

    # -- Wave extend -----------------------------------------------------

    def check_wave_extension(self, state: GameState, base_timer: float) -> RollResult:
        """Roll each eligible building once; the first success extends the timer.

        ``value`` holds the bonus seconds.
        """
        for building in self.eligible_buildings(state, SpecialEffectType.WAVE_EXTEND):
            chance = wave_extend_chance(building.level, building.evolution_tier)
            if self._rng.random() < chance:
                return RollResult(True, chance, wave_extend_bonus(base_timer))
        return RollResult(False)
