"""Combat system: tap damage, auto damage, bursts and scrap from damage.

Tick outcome order (must be preserved):
1. enemy health <= 0   - defeated, resolved by the session
2. wave timer <= 0     - timer expired, resolved by the session
3. auto damage         - combat buildings deal ``dps * dt``

The combat tick never touches the wave timer; the session counts it down
before calling :meth:`CombatSystem.tick`.
"""

from __future__ import annotations

import enum
import logging
import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rampage.engine.prestige import PrestigeBonuses
from rampage.engine.production import ProductionSystem
from rampage.engine.special_effects import SpecialEffectsSystem
from rampage.models.building import BuildingRole
from rampage.util.events import BurstAttack, EnemyDamaged, TapRegistered

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.game_state import GameState
    from rampage.util.events import EventBus

log = logging.getLogger(__name__)

WEAK_POINT_SCANNER = "weak_point_scanner"


class CombatOutcome(str, enum.Enum):
    ONGOING = "ongoing"
    ENEMY_DEFEATED = "enemy_defeated"
    TIMER_EXPIRED = "timer_expired"


@dataclass(frozen=True)
class CombatBonuses:
    """Every multiplier a hit is scaled by, gathered once per tick.

    Attributes:
        prestige: Folded prestige upgrades.
        boost_multiplier: Combined active boosts (already capped).
        tier_multiplier: Prestige milestone multiplier.
        damage_multiplier: Damage synergy.
        global_efficiency: Efficiency synergy (auto damage only).
        burst_boost: Extra burst chance from training facilities.
    """

    prestige: PrestigeBonuses = field(default_factory=PrestigeBonuses)
    boost_multiplier: float = 1.0
    tier_multiplier: float = 1.0
    damage_multiplier: float = 1.0
    global_efficiency: float = 1.0
    burst_boost: float = 0.0


@dataclass(frozen=True)
class BurstCheck:
    triggered: bool
    multiplier: float = 1.0


@dataclass(frozen=True)
class TapResult:
    """Outcome of one tap."""

    damage: int
    is_burst: bool = False
    is_weak_point: bool = False
    is_critical: bool = False
    scrap: int = 0


@dataclass
class CombatTickResult:
    outcome: CombatOutcome = CombatOutcome.ONGOING
    damage: float = 0.0
    scrap: int = 0
    is_burst: bool = False


class CombatSystem:
    """Damage rules for the current enemy.

    Args:
        catalog: Building definitions (combat-role buildings, scanner).
        game_config: Combat constants.
        event_bus: Optional sink for tap, burst and damage events.
        rng: Random source for variance and burst rolls.
        special_effects: Critical-weakness roller; built on ``rng`` when omitted.
    """

    def __init__(
        self,
        catalog: Catalog,
        game_config: GameConfig | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        special_effects: SpecialEffectsSystem | None = None,
    ) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()
        self._events = event_bus
        self._rng = rng or random.Random()
        self._production = ProductionSystem(catalog, self._config)
        self._special = special_effects or SpecialEffectsSystem(catalog, self._config, self._rng)

    # -- Burst -----------------------------------------------------------

    def effective_burst_chance(self, state: GameState, bonuses: CombatBonuses) -> float:
        """Base chance plus prestige and special-effect bonuses, capped."""
        chance = state.combat.burst_chance + bonuses.prestige.burst_chance_bonus + bonuses.burst_boost
        return max(0.0, min(self._config.combat.max_burst_chance, chance))

    def burst_multiplier(self, state: GameState, bonuses: CombatBonuses) -> float:
        return state.combat.burst_multiplier * bonuses.prestige.burst_damage_multiplier

    def check_burst_attack(self, chance: float, multiplier: float) -> BurstCheck:
        """One roll against ``chance``; a miss always yields multiplier 1."""
        if chance > 0 and self._rng.random() < chance:
            return BurstCheck(True, multiplier)
        return BurstCheck(False, 1.0)

    # -- Weak points -----------------------------------------------------

    def weak_point_multiplier(self, state: GameState) -> float:
        """Multiplier for a weak-point tap; improved by the scanner building."""
        cfg = self._config.combat
        multiplier = cfg.weak_point_base
        scanner = state.get_building(WEAK_POINT_SCANNER)
        if scanner is not None and scanner.is_unlocked:
            multiplier += ((scanner.evolution_tier - 1) * cfg.weak_point_per_tier
                           + (scanner.level - 1) * cfg.weak_point_per_level
                           + scanner.assigned_builders * cfg.weak_point_per_worker)
        return min(cfg.weak_point_max, multiplier)

    # -- Damage ----------------------------------------------------------

    def calculate_tap_damage(self, state: GameState, bonuses: CombatBonuses,
                             on_weak_point: bool = False) -> TapResult:
        """Roll one tap without applying it."""
        cfg = self._config.combat
        variance = self._rng.uniform(cfg.tap_variance_min, cfg.tap_variance_max)
        damage = (state.combat.base_tap_damage * variance
                  * bonuses.prestige.tap_power_multiplier
                  * bonuses.tier_multiplier
                  * bonuses.boost_multiplier
                  * bonuses.damage_multiplier)

        burst = self.check_burst_attack(
            self.effective_burst_chance(state, bonuses),
            self.burst_multiplier(state, bonuses),
        )
        damage *= burst.multiplier

        is_critical = False
        if on_weak_point:
            critical = self._special.roll_critical_weakness(state)
            is_critical = critical.triggered
            damage *= critical.value if is_critical else self.weak_point_multiplier(state)

        return TapResult(
            damage=int(math.floor(damage)),
            is_burst=burst.triggered,
            is_weak_point=on_weak_point,
            is_critical=is_critical,
        )

    def calculate_auto_damage(self, state: GameState, bonuses: CombatBonuses) -> float:
        """Damage per second of every staffed combat building."""
        base = 0.0
        for building in state.buildings:
            definition = self._catalog.get_building(building.type_id)
            if definition is None or definition.role != BuildingRole.COMBAT:
                continue
            base += self._production.building_output(building, include_passive=False)
        return (base
                * bonuses.prestige.auto_damage_multiplier
                * bonuses.boost_multiplier
                * bonuses.tier_multiplier
                * bonuses.damage_multiplier
                * bonuses.global_efficiency)

    def scrap_from_damage(self, state: GameState, damage: float, bonuses: CombatBonuses) -> int:
        """Whole scrap earned for ``damage``; the fraction carries over."""
        combat = state.combat
        enemy = combat.current_enemy
        if enemy is None or enemy.max_health <= 0 or damage <= 0:
            return 0
        share = self._config.combat.damage_scrap_percent
        combat.scrap_progress += (enemy.reward * share * damage / enemy.max_health
                                  * bonuses.prestige.wave_rewards_multiplier
                                  * bonuses.boost_multiplier)
        whole = int(math.floor(combat.scrap_progress))
        combat.scrap_progress -= whole
        return whole

    def apply_damage(self, state: GameState, damage: float, bonuses: CombatBonuses,
                     is_burst: bool = False) -> tuple[float, int]:
        """Subtract ``damage`` from the current enemy.

        Returns the health actually removed and the scrap it paid.
        """
        enemy = state.combat.current_enemy
        if enemy is None or damage <= 0 or enemy.is_defeated:
            return 0.0, 0
        dealt = min(damage, enemy.current_health)
        enemy.current_health -= dealt
        scrap = self.scrap_from_damage(state, dealt, bonuses)
        if scrap > 0:
            state.player.add_scrap(scrap)
        self._emit(EnemyDamaged(damage=int(dealt), remaining_health=enemy.current_health,
                                is_burst=is_burst))
        return dealt, scrap

    # -- Entry points ----------------------------------------------------

    def process_tap(self, state: GameState, bonuses: CombatBonuses,
                    on_weak_point: bool = False) -> TapResult:
        combat = state.combat
        if not combat.is_active or combat.current_enemy is None or combat.current_enemy.is_defeated:
            return TapResult(damage=0)

        tap = self.calculate_tap_damage(state, bonuses, on_weak_point)
        state.player.total_taps += 1
        combat.last_hit_source = "tap"
        _, scrap = self.apply_damage(state, tap.damage, bonuses, tap.is_burst)
        if tap.is_burst:
            self._emit(BurstAttack(damage=tap.damage, multiplier=self.burst_multiplier(state, bonuses)))
        self._emit(TapRegistered(damage=tap.damage, is_burst=tap.is_burst,
                                 is_weak_point=tap.is_weak_point, is_critical=tap.is_critical))
        return TapResult(tap.damage, tap.is_burst, tap.is_weak_point, tap.is_critical, scrap)

    def tick(self, state: GameState, bonuses: CombatBonuses, delta_ms: float) -> CombatTickResult:
        """Resolve the current fight for one tick."""
        result = CombatTickResult()
        combat = state.combat
        enemy = combat.current_enemy
        if not combat.is_active or enemy is None:
            return result
        if enemy.is_defeated:
            result.outcome = CombatOutcome.ENEMY_DEFEATED
            return result
        if combat.wave_timer <= 0:
            result.outcome = CombatOutcome.TIMER_EXPIRED
            return result
        if delta_ms <= 0:
            return result

        dps = self.calculate_auto_damage(state, bonuses)
        if dps <= 0:
            return result
        damage = dps * delta_ms / 1000.0
        burst = self.check_burst_attack(
            self.effective_burst_chance(state, bonuses),
            self.burst_multiplier(state, bonuses),
        )
        damage *= burst.multiplier
        combat.last_hit_source = "auto"
        dealt, scrap = self.apply_damage(state, damage, bonuses, burst.triggered)
        if burst.triggered:
            self._emit(BurstAttack(damage=int(dealt), multiplier=burst.multiplier))

        result.damage = dealt
        result.scrap = scrap
        result.is_burst = burst.triggered
        if enemy.is_defeated:
            result.outcome = CombatOutcome.ENEMY_DEFEATED
        return result

    def _emit(self, event: object) -> None:
        if self._events is not None:
            self._events.emit(event)
