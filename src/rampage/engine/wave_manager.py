"""Wave manager: enemy spawning, wave timers, rewards and wave advance.

Responsibilities:
- Pick the enemy tier for a wave and scale health/reward inside it
- Boss waves every ``boss_interval`` waves, final bosses on fixed waves
- Wave timer and wave completion reward
- Unlock and evolve buildings when the wave advances
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rampage.models.enemy import Enemy
from rampage.util.events import BuildingEvolved, BuildingUnlocked, MilestoneReached

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.game_state import GameState
    from rampage.util.events import EventBus

log = logging.getLogger(__name__)

BOSS_SUFFIX = " Alpha"


@dataclass(frozen=True)
class WaveReward:
    """Breakdown of a wave completion payout."""

    enemy_reward: int
    bonus_scrap: int
    step_multiplier: float
    total: int


def scaled_stat(base: float, multiplier: float, wave: int, min_wave: int) -> int:
    """``floor(base * multiplier^(wave - min_wave))``, never below the base tier value."""
    return int(math.floor(base * multiplier ** max(0, wave - min_wave)))


class WaveManager:
    """Wave progression rules.

    Args:
        catalog: Enemy tiers, final bosses and building definitions.
        game_config: Timer, boss and reward constants.
        event_bus: Optional sink for unlock/evolution/milestone events.
    """

    def __init__(self, catalog: Catalog, game_config: GameConfig | None = None,
                 event_bus: EventBus | None = None) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()
        self._events = event_bus
        self._spawn_ids = itertools.count(1)

    # -- Spawning --------------------------------------------------------

    def is_boss_wave(self, wave: int) -> bool:
        interval = self._config.boss_interval
        return interval > 0 and wave > 0 and wave % interval == 0

    def spawn_enemy_for_wave(self, wave: int) -> Enemy:
        """Create the enemy for ``wave``; final bosses override tier scaling."""
        wave = max(1, wave)
        spawn_id = next(self._spawn_ids)
        boss = self._catalog.get_final_boss(wave)
        if boss is not None:
            return Enemy(
                id=f"{boss.id}_{spawn_id}",
                tier_id=boss.id,
                name=boss.name,
                current_health=boss.health,
                max_health=boss.health,
                reward=int(boss.reward),
                wave=wave,
                is_boss=True,
                is_final_boss=True,
            )

        tier = self._catalog.enemy_tier_for_wave(wave)
        if tier is None:
            log.warning("No enemy tiers loaded, spawning placeholder for wave %d", wave)
            return Enemy(id=f"unknown_{spawn_id}", tier_id="unknown", name="Unknown",
                         current_health=1.0, max_health=1.0, reward=0, wave=wave)

        health = scaled_stat(tier.base_health, tier.health_multiplier, wave, tier.min_wave)
        reward = scaled_stat(tier.base_reward, tier.reward_multiplier, wave, tier.min_wave)
        name = tier.name
        is_boss = self.is_boss_wave(wave)
        if is_boss:
            health = int(math.floor(health * self._config.boss_health_multiplier))
            reward = int(math.floor(reward * self._config.boss_reward_multiplier))
            name += BOSS_SUFFIX
        return Enemy(
            id=f"{tier.id}_{spawn_id}",
            tier_id=tier.id,
            name=name,
            current_health=float(health),
            max_health=float(health),
            reward=reward,
            wave=wave,
            is_boss=is_boss,
        )

    # -- Timer -----------------------------------------------------------

    def calculate_wave_timer(self, wave: int) -> float:
        """Base timer: grows per wave up to ``max_wave_timer``."""
        cfg = self._config
        return min(cfg.base_wave_timer + max(0, wave) * cfg.wave_timer_per_wave, cfg.max_wave_timer)

    def spawn_timer(self, wave: int) -> float:
        """Timer for a freshly spawned enemy, including boss adjustments."""
        boss = self._catalog.get_final_boss(wave)
        if boss is not None:
            return boss.timer_seconds
        timer = self.calculate_wave_timer(wave)
        if self.is_boss_wave(wave):
            timer *= self._config.boss_timer_multiplier
        return timer

    # -- Rewards ---------------------------------------------------------

    def reward_step_multiplier(self, wave: int) -> float:
        cfg = self._config
        if cfg.reward_step_waves <= 0:
            return 1.0
        steps = max(0, wave) // cfg.reward_step_waves
        return min(cfg.reward_step_cap, 1.0 + steps * cfg.reward_step_bonus)

    def calculate_wave_reward(self, wave: int, enemy_reward: float,
                              prestige_bonus: float = 1.0, boost_multiplier: float = 1.0) -> WaveReward:
        """Enemy reward plus a linear-and-polynomial wave bonus, then the
        stepped multiplier, then prestige, then boost."""
        wave = max(0, wave)
        bonus = int(math.floor(wave * 50 + wave ** 1.5))
        step = self.reward_step_multiplier(wave)
        total = int(math.floor((enemy_reward + bonus) * step * prestige_bonus * boost_multiplier))
        return WaveReward(int(enemy_reward), bonus, step, total)

    # -- Advance ---------------------------------------------------------

    def update_buildings_for_wave(self, state: GameState, wave: int) -> list[tuple[str, int, int]]:
        """Unlock buildings and raise evolution tiers reached by ``wave``.

        Tiers never go down. Returns ``(building_id, old_tier, new_tier)``
        for every evolution.
        """
        evolutions = []
        for building in state.buildings:
            definition = self._catalog.get_building(building.type_id)
            if definition is None:
                continue
            if not building.is_unlocked and definition.unlock_wave <= wave:
                building.is_unlocked = True
                log.info("Building unlocked at wave %d: %s", wave, building.id)
                self._emit(BuildingUnlocked(building_id=building.id, wave=wave))
            if not building.is_unlocked:
                continue
            target = definition.tier_for_wave(wave).tier
            if target > building.evolution_tier:
                old = building.evolution_tier
                building.evolution_tier = target
                evolutions.append((building.id, old, target))
                log.info("Building %s evolved: tier %d -> %d", building.id, old, target)
                self._emit(BuildingEvolved(building_id=building.id, old_tier=old, new_tier=target))
        return evolutions

    def advance_wave(self, state: GameState) -> int:
        """Move to the next wave and apply wave-threshold effects."""
        state.current_wave += 1
        wave = state.current_wave
        player = state.player
        if wave > player.highest_wave:
            player.highest_wave = wave
            interval = self._config.milestone_wave_interval
            if interval > 0 and wave % interval == 0:
                self._emit(MilestoneReached(wave=wave))
        self.update_buildings_for_wave(state, wave)
        return wave

    def _emit(self, event: object) -> None:
        if self._events is not None:
            self._events.emit(event)
