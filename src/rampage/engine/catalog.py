"""Catalog: immutable indexed tables of every static definition.

Built once at startup from :class:`CatalogData`. All lookups are
fallible and return ``None`` for unknown ids; callers treat a missing
entry as "no effect".
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from rampage.loaders.catalog_loader import CatalogData
from rampage.models.building import BuildingDefinition, BuildingRole
from rampage.models.enemy import EnemyTier, FinalBoss
from rampage.models.upgrades import (
    LuckyDropDefinition,
    PrestigeMilestoneTier,
    PrestigeUpgradeDefinition,
    SynergyDefinition,
)


class Catalog:
    """Read-only game database.

    Attributes:
        buildings: Building definitions keyed by id (catalog order).
        enemy_tiers: Enemy tiers ordered by ``min_wave``.
        final_bosses: Final bosses keyed by wave.
        synergies: Synergy definitions keyed by id.
        prestige_upgrades: Prestige upgrades keyed by id.
        milestones: Prestige milestone tiers ordered by prestige count.
        ranks: Prestige rank names by prestige level.
        drops: Lucky drop table.
    """

    def __init__(self, data: CatalogData | None = None) -> None:
        data = data or CatalogData()
        self.buildings: Mapping[str, BuildingDefinition] = MappingProxyType(
            {b.id: b for b in data.buildings})
        self.enemy_tiers: tuple[EnemyTier, ...] = tuple(data.enemy_tiers)
        self.final_bosses: Mapping[int, FinalBoss] = MappingProxyType(
            {b.wave: b for b in data.final_bosses})
        self.synergies: Mapping[str, SynergyDefinition] = MappingProxyType(
            {s.id: s for s in data.synergies})
        self.prestige_upgrades: Mapping[str, PrestigeUpgradeDefinition] = MappingProxyType(
            {u.id: u for u in data.prestige_upgrades})
        self.milestones: tuple[PrestigeMilestoneTier, ...] = tuple(data.milestones)
        self.ranks: tuple[str, ...] = tuple(data.ranks)
        self.drops: tuple[LuckyDropDefinition, ...] = tuple(data.drops)

    def get_building(self, building_id: str) -> Optional[BuildingDefinition]:
        return self.buildings.get(building_id)

    def buildings_by_role(self, role: BuildingRole) -> list[BuildingDefinition]:
        return [b for b in self.buildings.values() if b.role == role]

    def get_final_boss(self, wave: int) -> Optional[FinalBoss]:
        return self.final_bosses.get(wave)

    def get_synergy(self, synergy_id: str) -> Optional[SynergyDefinition]:
        return self.synergies.get(synergy_id)

    def get_prestige_upgrade(self, upgrade_id: str) -> Optional[PrestigeUpgradeDefinition]:
        return self.prestige_upgrades.get(upgrade_id)

    def enemy_tier_for_wave(self, wave: int) -> Optional[EnemyTier]:
        """Tier whose range contains ``wave``, else the last tier."""
        for tier in self.enemy_tiers:
            if tier.contains(wave):
                return tier
        return self.enemy_tiers[-1] if self.enemy_tiers else None

    def milestone_for_prestige_count(self, prestige_count: int) -> Optional[PrestigeMilestoneTier]:
        """Highest milestone tier reached with ``prestige_count`` prestiges."""
        reached = None
        for milestone in self.milestones:
            if prestige_count >= milestone.prestige_count:
                reached = milestone
        return reached
