"""Game session: state, systems and player actions for one player.

Tick order (must be preserved):
1. production     - scrap from production buildings
2. boosts         - decay active boosts
3. clock          - advance the simulated clock
4. scrap find     - cooldown-gated bonus scrap
5. spawn          - first enemy if no wave is running
6. timer          - count the wave timer down
7. combat         - auto damage against the current enemy
8. outcome        - wave cleared (reward, drops, advance) or failed (retry)

Player actions run to completion between ticks and never raise for
expected failures; they return an :class:`ActionResult`.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from rampage.engine.boosts import add_boost, combined_boost_multiplier, tick_boosts
from rampage.engine.builder_pool import BuilderPool
from rampage.engine.combat import CombatBonuses, CombatOutcome, CombatSystem, CombatTickResult
from rampage.engine.lucky_drops import LuckyDropSystem
from rampage.engine.prestige import PrestigeBonuses, PrestigeSystem
from rampage.engine.production import ProductionBonuses, ProductionSystem
from rampage.engine.special_effects import SpecialEffectsSystem
from rampage.engine.synergy import SynergyBonuses, SynergySystem
from rampage.engine.wave_manager import WaveManager
from rampage.models.game_state import GameState, create_initial_state
from rampage.util.events import (
    BoostApplied,
    BuildingUpgraded,
    EnemyDefeated,
    EventBus,
    ResourceGained,
    ScrapFound,
    WaveCleared,
    WaveExtended,
    WaveFailed,
)
from rampage.util.results import ActionResult, fail, ok
from rampage.util.types import format_multiplier, format_number, format_time

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig

log = logging.getLogger(__name__)


@dataclass
class TickResult:
    """What happened during one tick."""

    produced: int = 0
    scrap_found: int = 0
    combat: Optional[CombatTickResult] = None
    wave_cleared: bool = False
    wave_failed: bool = False
    wave_reward: int = 0


class GameSession:
    """Owns one :class:`GameState` and every system that mutates it.

    Args:
        catalog: Static definitions.
        game_config: Balance constants; defaults when omitted.
        state: Existing state (e.g. restored from a save); a fresh game
            is created when omitted.
        event_bus: Notification sink shared by every system.
        rng: Random source for every roll; pass a seeded one for replays.
    """

    def __init__(
        self,
        catalog: Catalog,
        game_config: GameConfig | None = None,
        state: GameState | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
    ) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self.catalog = catalog
        self.config = game_config or GameConfig()
        self.events = event_bus or EventBus()
        self.rng = rng or random.Random()
        self.state = state or create_initial_state(catalog.buildings.values(), self.config)

        self.builders = BuilderPool(catalog, self.events)
        self.production = ProductionSystem(catalog, self.config)
        self.prestige = PrestigeSystem(catalog, self.config, self.events)
        self.synergy = SynergySystem(catalog)
        self.special_effects = SpecialEffectsSystem(catalog, self.config, self.rng)
        self.combat = CombatSystem(catalog, self.config, self.events, self.rng, self.special_effects)
        self.waves = WaveManager(catalog, self.config, self.events)
        self.drops = LuckyDropSystem(catalog, self.config, self.events, self.rng)

    # -- Bonuses ---------------------------------------------------------

    def prestige_bonuses(self) -> PrestigeBonuses:
        return self.prestige.calculate_bonuses(self.state.player.prestige_upgrades)

    def synergy_bonuses(self) -> SynergyBonuses:
        return self.synergy.calculate_bonuses(self.state)

    def boost_multiplier(self) -> float:
        return combined_boost_multiplier(self.state.player.active_boosts, self.config.max_boost_multiplier)

    def tier_multiplier(self) -> float:
        return self.prestige.tier_multiplier(self.state.player.prestige_count)

    def production_bonuses(self, prestige: PrestigeBonuses | None = None,
                           synergy: SynergyBonuses | None = None) -> ProductionBonuses:
        prestige = prestige or self.prestige_bonuses()
        synergy = synergy or self.synergy_bonuses()
        return ProductionBonuses(
            wave_bonus=self.production.wave_bonus(self.state.current_wave),
            prestige_multiplier=prestige.production_multiplier,
            boost_multiplier=self.boost_multiplier(),
            command_center_bonus=self.production.command_center_bonus(self.state),
            tier_multiplier=self.tier_multiplier(),
            synergy_multiplier=synergy.production_multiplier * synergy.global_efficiency,
        )

    def combat_bonuses(self, prestige: PrestigeBonuses | None = None,
                       synergy: SynergyBonuses | None = None) -> CombatBonuses:
        prestige = prestige or self.prestige_bonuses()
        synergy = synergy or self.synergy_bonuses()
        return CombatBonuses(
            prestige=prestige,
            boost_multiplier=self.boost_multiplier(),
            tier_multiplier=self.tier_multiplier(),
            damage_multiplier=synergy.damage_multiplier,
            global_efficiency=synergy.global_efficiency,
            burst_boost=self.special_effects.total_burst_boost(self.state),
        )

    # -- Tick ------------------------------------------------------------

    def tick(self, delta_ms: float) -> TickResult:
        """Advance the game by ``delta_ms``; zero or negative is a no-op."""
        result = TickResult()
        if delta_ms <= 0:
            return result
        state = self.state
        player = state.player
        prestige = self.prestige_bonuses()
        synergy = self.synergy_bonuses()

        # 1. Production
        produced = self.production.tick(state, self.production_bonuses(prestige, synergy), delta_ms)
        if produced.total > 0:
            player.add_scrap(produced.total)
            result.produced = produced.total
            self.events.emit(ResourceGained(amount=produced.total, source="production"))

        # 2. Boost decay
        player.active_boosts = tick_boosts(player.active_boosts, delta_ms)

        # 3. Simulated clock
        state.special_effects.clock_ms += delta_ms

        # 4. Scrap find
        enemy = state.combat.current_enemy
        if state.combat.is_active and enemy is not None:
            estimate = self.waves.calculate_wave_reward(state.current_wave, enemy.reward).total
            found = self.special_effects.process_scrap_find(state, estimate, prestige)
            if found.triggered:
                player.add_scrap(found.amount)
                result.scrap_found = found.amount
                self.events.emit(ScrapFound(building_id=found.building_id, amount=found.amount))
                self.events.emit(ResourceGained(amount=found.amount, source="scrap_find"))

        # 5. First spawn
        if not state.combat.is_active:
            self.start_wave()

        # 6. Timer
        state.combat.count_down(delta_ms / 1000.0)

        # 7. Combat
        combat = self.combat.tick(state, self.combat_bonuses(prestige, synergy), delta_ms)
        result.combat = combat
        if combat.scrap > 0:
            self.events.emit(ResourceGained(amount=combat.scrap, source="damage"))

        # 8. Outcome
        if combat.outcome is CombatOutcome.ENEMY_DEFEATED:
            result.wave_reward = self._complete_wave(prestige, synergy)
            result.wave_cleared = True
        elif combat.outcome is CombatOutcome.TIMER_EXPIRED:
            self._fail_wave()
            result.wave_failed = True
        return result

    # -- Waves -----------------------------------------------------------

    def start_wave(self) -> None:
        """Spawn the enemy for the current wave and start its timer."""
        state = self.state
        wave = state.current_wave
        combat = state.combat
        combat.current_enemy = self.waves.spawn_enemy_for_wave(wave)
        combat.is_active = True
        combat.scrap_progress = 0.0
        combat.last_hit_source = "auto"

        base_timer = self.waves.spawn_timer(wave)
        timer = base_timer + self.production.shield_bonus_seconds(state)
        extension = self.special_effects.check_wave_extension(state, base_timer)
        if extension.triggered:
            timer += extension.value
            state.special_effects.waves_extended += 1
            self.events.emit(WaveExtended(wave=wave, bonus_seconds=extension.value))
        combat.set_timer(timer, self.config.wave_timer_ceiling)
        log.debug("Wave %d spawned %s (hp=%.0f, timer=%.1fs)",
                  wave, combat.current_enemy.name, combat.current_enemy.max_health, combat.wave_timer)

    def _complete_wave(self, prestige: PrestigeBonuses, synergy: SynergyBonuses) -> int:
        state = self.state
        player = state.player
        enemy = state.combat.current_enemy
        wave = state.current_wave

        completion_share = 1.0 - self.config.combat.damage_scrap_percent
        enemy_share = int(math.floor(enemy.reward * completion_share))
        reward = self.waves.calculate_wave_reward(
            wave, enemy_share, prestige.wave_rewards_multiplier, self.boost_multiplier(),
        )
        if state.combat.last_hit_source == "tap":
            kill_bonus = synergy.scrap_from_tap_kills
        else:
            kill_bonus = synergy.scrap_from_auto_kills
        total = int(math.floor(
            reward.total * (1.0 + self.production.salvage_bonus(state)) * (1.0 + kill_bonus)
        ))
        player.add_scrap(total)
        player.total_enemies_defeated += 1
        self.events.emit(EnemyDefeated(enemy_id=enemy.id, wave=wave, reward=total))
        self.events.emit(ResourceGained(amount=total, source="wave"))

        if enemy.is_final_boss:
            boss = self.catalog.get_final_boss(wave)
            loot = self.drops.final_boss_drop(boss) if boss is not None else None
            if loot is not None:
                self.drops.grant(state, loot)
        drop = self.drops.roll(enemy.reward, enemy.is_boss)
        if drop is not None:
            self.drops.grant(state, drop)

        log.info("Wave %d cleared: %s scrap (step %s)",
                 wave, format_number(total), format_multiplier(reward.step_multiplier))
        self.events.emit(WaveCleared(wave=wave, reward=total, is_boss=enemy.is_boss))
        self.waves.advance_wave(state)
        self.start_wave()
        return total

    def _fail_wave(self) -> None:
        wave = self.state.current_wave
        log.info("Wave %d failed, retrying", wave)
        self.events.emit(WaveFailed(wave=wave))
        self.start_wave()

    # -- Player actions --------------------------------------------------

    def assign_builder(self, building_id: str) -> ActionResult:
        return self.builders.assign(self.state, building_id)

    def unassign_builder(self, building_id: str) -> ActionResult:
        return self.builders.unassign(self.state, building_id)

    def reassign_builder(self, from_id: str, to_id: str) -> ActionResult:
        return self.builders.reassign(self.state, from_id, to_id)

    def upgrade_cost(self, building_id: str) -> Optional[int]:
        building = self.state.get_building(building_id)
        if building is None:
            return None
        return self.production.upgrade_cost(self.state, building, self.synergy_bonuses().upgrade_speed)

    def upgrade_building(self, building_id: str) -> ActionResult:
        """Spend scrap to raise a building one level."""
        building = self.state.get_building(building_id)
        if building is None or self.catalog.get_building(building.type_id) is None:
            return fail(f"Unknown building: {building_id}")
        if not building.is_unlocked:
            return fail(f"{building.id} is locked")
        cost = self.upgrade_cost(building_id)
        player = self.state.player
        if player.scrap < cost:
            return fail(f"Not enough scrap ({format_number(player.scrap)}/{format_number(cost)})",
                        cost=cost)
        player.scrap -= cost
        building.level += 1
        log.info("Building %s upgraded to level %d (cost %d)", building.id, building.level, cost)
        self.events.emit(BuildingUpgraded(building_id=building.id, new_level=building.level, cost=cost))
        return ok(f"{building.id} upgraded", level=building.level, cost=cost)

    def tap(self, on_weak_point: bool = False) -> ActionResult:
        """Hit the current enemy; the tick resolves a kill."""
        if not self.state.combat.is_active:
            self.start_wave()
        enemy = self.state.combat.current_enemy
        if enemy is None or enemy.is_defeated:
            return fail("No enemy to hit")
        result = self.combat.process_tap(self.state, self.combat_bonuses(), on_weak_point)
        if result.scrap > 0:
            self.events.emit(ResourceGained(amount=result.scrap, source="damage"))
        return ok(
            "Hit",
            damage=result.damage,
            is_burst=result.is_burst,
            is_weak_point=result.is_weak_point,
            is_critical=result.is_critical,
            scrap=result.scrap,
            remaining_health=enemy.current_health,
        )

    def purchase_upgrade(self, upgrade_id: str) -> ActionResult:
        return self.prestige.purchase_upgrade(self.state, upgrade_id)

    def execute_prestige(self) -> ActionResult:
        return self.prestige.execute_prestige(self.state, self.builders)

    def purchase_builder(self) -> ActionResult:
        return self.prestige.purchase_builder(self.state, self.builders)

    # -- Grants ----------------------------------------------------------

    def grant_builders(self, count: int) -> ActionResult:
        return self.builders.add_builders(self.state, count)

    def apply_boost(self, multiplier: float, duration_ms: float, boost_id: str = "purchase") -> ActionResult:
        if multiplier <= 0 or duration_ms <= 0:
            return fail("Boost multiplier and duration must be positive")
        boost = add_boost(self.state.player, boost_id, multiplier, duration_ms)
        self.events.emit(BoostApplied(boost_id=boost.id, multiplier=boost.multiplier,
                                      duration_ms=boost.remaining_duration_ms))
        return ok(f"Boost {format_multiplier(boost.multiplier)} applied",
                  boost_id=boost.id, multiplier=boost.multiplier,
                  duration_ms=boost.remaining_duration_ms)

    def apply_offline_progress(self, elapsed_seconds: float) -> ActionResult:
        """Credit one batch of production for time spent away."""
        if elapsed_seconds <= 0:
            return fail("Nothing to credit")
        amount = self.production.offline_production(self.state, self.production_bonuses(), elapsed_seconds)
        if amount > 0:
            self.state.player.add_scrap(amount)
            self.events.emit(ResourceGained(amount=amount, source="offline"))
        log.info("Offline progress: %s away, %s scrap", format_time(elapsed_seconds), format_number(amount))
        return ok("Offline progress applied", amount=amount, elapsed_seconds=elapsed_seconds)

    # -- Derived values --------------------------------------------------

    def derived(self) -> dict[str, Any]:
        """Per-tick values for the UI."""
        state = self.state
        prestige = self.prestige_bonuses()
        synergy = self.synergy_bonuses()
        per_building = self.production.production_per_second(state, self.production_bonuses(prestige, synergy))
        combat_bonuses = self.combat_bonuses(prestige, synergy)
        enemy = state.combat.current_enemy
        suggestion = self.synergy.suggest_next_synergy(state)
        return {
            "wave": state.current_wave,
            "production_per_building": per_building,
            "production_per_second": sum(per_building.values()),
            "auto_damage_per_second": self.combat.calculate_auto_damage(state, combat_bonuses),
            "enemy": None if enemy is None else {
                "id": enemy.id,
                "name": enemy.name,
                "current_health": enemy.current_health,
                "max_health": enemy.max_health,
                "reward": enemy.reward,
                "is_boss": enemy.is_boss,
            },
            "wave_timer": state.combat.wave_timer,
            "wave_timer_max": state.combat.wave_timer_max,
            "bonuses": {
                "boost_multiplier": combat_bonuses.boost_multiplier,
                "tier_multiplier": combat_bonuses.tier_multiplier,
                "burst_chance": self.combat.effective_burst_chance(state, combat_bonuses),
                "weak_point_multiplier": self.combat.weak_point_multiplier(state),
                "engineering_discount": self.production.engineering_discount(state),
                "salvage_bonus": self.production.salvage_bonus(state),
                "shield_bonus_seconds": self.production.shield_bonus_seconds(state),
                "command_center_bonus": self.production.command_center_bonus(state),
            },
            "synergies": [s.id for s in self.synergy.active_synergies(state)],
            "next_synergy": None if suggestion is None else {
                "id": suggestion[0].id, "workers_needed": suggestion[1],
            },
            "prestige": self.prestige.preview_prestige(state.current_wave),
        }
