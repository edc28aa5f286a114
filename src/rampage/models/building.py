"""Building models: static evolvable definitions and per-save instances."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BuildingRole(str, Enum):
    PRODUCTION = "production"
    COMBAT = "combat"
    UTILITY = "utility"


class SpecialEffectType(str, Enum):
    """Building-gated bonus kinds; each is owned by exactly one building type."""
    SCRAP_FIND = "scrap_find"
    BURST_BOOST = "burst_boost"
    CRITICAL_WEAKNESS = "critical_weakness"
    WAVE_EXTEND = "wave_extend"


@dataclass(frozen=True)
class BuildingTier:
    """One evolution generation of a building.

    Attributes:
        tier: 1-based tier number.
        name: Display name at this tier.
        base_production: Output per effective worker per second. For
            utility buildings the unit depends on the building (fractional
            bonus, discount, or seconds for the shield generator).
        base_cost: Upgrade cost at level 1 while in this tier.
        unlock_wave: First wave at which this tier is reached.
        special_effect: Special effect enabled while in this tier.
    """

    tier: int
    name: str
    base_production: float
    base_cost: float
    unlock_wave: int
    special_effect: Optional[SpecialEffectType] = None


@dataclass(frozen=True)
class BuildingDefinition:
    """Immutable catalog entry for an evolvable building type."""

    id: str
    role: BuildingRole
    cost_multiplier: float
    max_builders: int
    tiers: tuple[BuildingTier, ...]
    no_workers: bool = False
    description: str = ""

    @property
    def unlock_wave(self) -> int:
        """Wave at which the building first becomes available."""
        return self.tiers[0].unlock_wave

    def get_tier(self, tier: int) -> BuildingTier:
        """Tier data for a 1-based tier number, clamped to the defined range."""
        index = min(max(tier, 1), len(self.tiers)) - 1
        return self.tiers[index]

    def tier_for_wave(self, wave: int) -> BuildingTier:
        """Highest tier whose unlock wave is at or below ``wave``."""
        current = self.tiers[0]
        for tier in self.tiers:
            if tier.unlock_wave <= wave:
                current = tier
        return current


@dataclass
class BuildingInstance:
    """A building in the player's base.

    Attributes:
        id: Instance id, ``<type_id>_1`` for the catalog-created instance.
        type_id: Catalog id of the building definition.
        level: Upgrade level (>= 1).
        assigned_builders: Workers currently assigned.
        evolution_tier: Current tier (>= 1); only ever increases.
        production_progress: Fractional scrap carried between ticks.
        upgrade_progress: Reserved for timed upgrades; kept for save
            compatibility.
        is_unlocked: Whether the wave threshold has been reached.
    """

    id: str
    type_id: str
    level: int = 1
    assigned_builders: int = 0
    evolution_tier: int = 1
    production_progress: float = 0.0
    upgrade_progress: float = 0.0
    is_unlocked: bool = False

    def reset(self) -> None:
        """Return to base values (used by prestige)."""
        self.level = 1
        self.assigned_builders = 0
        self.evolution_tier = 1
        self.production_progress = 0.0
        self.upgrade_progress = 0.0
