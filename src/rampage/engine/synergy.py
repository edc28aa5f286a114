"""Synergy system: cross-building bonuses from staffing thresholds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from rampage.models.upgrades import SynergyDefinition, SynergyEffectType

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.models.game_state import GameState


@dataclass(frozen=True)
class SynergyBonuses:
    """Folded bonuses of every active synergy.

    Kill-scrap bonuses are additive shares starting at 0; efficiency,
    production and damage are ``1 + sum``; upgrade speed is a product.
    """

    scrap_from_auto_kills: float = 0.0
    scrap_from_tap_kills: float = 0.0
    global_efficiency: float = 1.0
    upgrade_speed: float = 1.0
    production_multiplier: float = 1.0
    damage_multiplier: float = 1.0


@dataclass(frozen=True)
class RequirementProgress:
    building_id: str
    required: int
    current: int
    met: bool


class SynergySystem:
    """Evaluates synergy definitions against the current allocation."""

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    @staticmethod
    def _workers(state: GameState, building_id: str) -> int:
        """Assigned workers of an unlocked building; 0 if missing or locked."""
        building = state.get_building(building_id)
        if building is None or not building.is_unlocked:
            return 0
        return building.assigned_builders

    @staticmethod
    def _is_locked(state: GameState, building_id: str) -> bool:
        building = state.get_building(building_id)
        return building is None or not building.is_unlocked

    def _other_qualifying(self, synergy: SynergyDefinition, state: GameState) -> int:
        rule = synergy.other_buildings
        if rule is None:
            return 0
        excluded = {r.building_id for r in synergy.requirements}
        return sum(
            1 for b in state.buildings
            if b.type_id not in excluded and b.is_unlocked and b.assigned_builders >= rule.min_workers
        )

    def is_active(self, synergy: SynergyDefinition, state: GameState) -> bool:
        for requirement in synergy.requirements:
            if self._workers(state, requirement.building_id) < requirement.min_workers:
                return False
        if synergy.other_buildings is not None:
            return self._other_qualifying(synergy, state) >= synergy.other_buildings.count
        return True

    def active_synergies(self, state: GameState) -> list[SynergyDefinition]:
        return [s for s in self._catalog.synergies.values() if self.is_active(s, state)]

    def active_count(self, state: GameState) -> int:
        return len(self.active_synergies(state))

    def calculate_bonuses(self, state: GameState) -> SynergyBonuses:
        auto_kills = tap_kills = 0.0
        efficiency = production = damage = 0.0
        speed = 1.0
        for synergy in self.active_synergies(state):
            kind = synergy.effect_type
            if kind is SynergyEffectType.SCRAP_FROM_AUTO_KILLS:
                auto_kills += synergy.value
            elif kind is SynergyEffectType.SCRAP_FROM_TAP_KILLS:
                tap_kills += synergy.value
            elif kind is SynergyEffectType.GLOBAL_EFFICIENCY:
                efficiency += synergy.value
            elif kind is SynergyEffectType.UPGRADE_SPEED:
                speed *= synergy.value
            elif kind is SynergyEffectType.PRODUCTION_MULTIPLIER:
                production += synergy.value
            elif kind is SynergyEffectType.DAMAGE_MULTIPLIER:
                damage += synergy.value
        return SynergyBonuses(
            scrap_from_auto_kills=auto_kills,
            scrap_from_tap_kills=tap_kills,
            global_efficiency=1.0 + efficiency,
            upgrade_speed=speed,
            production_multiplier=1.0 + production,
            damage_multiplier=1.0 + damage,
        )

    # -- UI helpers ------------------------------------------------------

    def requirement_progress(self, synergy: SynergyDefinition, state: GameState) -> list[RequirementProgress]:
        progress = [
            RequirementProgress(
                building_id=r.building_id,
                required=r.min_workers,
                current=self._workers(state, r.building_id),
                met=self._workers(state, r.building_id) >= r.min_workers,
            )
            for r in synergy.requirements
        ]
        if synergy.other_buildings is not None:
            count = self._other_qualifying(synergy, state)
            progress.append(RequirementProgress(
                building_id="other_buildings",
                required=synergy.other_buildings.count,
                current=count,
                met=count >= synergy.other_buildings.count,
            ))
        return progress

    def workers_needed(self, synergy: SynergyDefinition, state: GameState) -> int:
        needed = sum(
            max(0, r.min_workers - self._workers(state, r.building_id))
            for r in synergy.requirements
        )
        rule = synergy.other_buildings
        if rule is not None:
            missing = max(0, rule.count - self._other_qualifying(synergy, state))
            needed += missing * rule.min_workers
        return needed

    def suggest_next_synergy(self, state: GameState) -> Optional[tuple[SynergyDefinition, int]]:
        """Inactive synergy needing the fewest extra workers, with that count.

        Synergies whose buildings are still locked are skipped.
        """
        best: Optional[tuple[SynergyDefinition, int]] = None
        for synergy in self._catalog.synergies.values():
            if self.is_active(synergy, state):
                continue
            if any(self._is_locked(state, r.building_id) for r in synergy.requirements):
                continue
            needed = self.workers_needed(synergy, state)
            if best is None or needed < best[1]:
                best = (synergy, needed)
        return best

    def synergies_for_building(self, building_type_id: str) -> list[SynergyDefinition]:
        return [
            s for s in self._catalog.synergies.values()
            if any(r.building_id == building_type_id for r in s.requirements)
        ]
