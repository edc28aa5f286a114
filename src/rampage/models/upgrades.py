"""Static meta-progression catalogs: synergies, prestige upgrades, drops.

Effect kinds are enums; every consumer dispatches on them with an
explicit branch per member.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# -- Synergies -----------------------------------------------------------

class SynergyEffectType(str, Enum):
    SCRAP_FROM_AUTO_KILLS = "scrap_from_auto_kills"
    SCRAP_FROM_TAP_KILLS = "scrap_from_tap_kills"
    GLOBAL_EFFICIENCY = "global_efficiency"
    UPGRADE_SPEED = "upgrade_speed"
    PRODUCTION_MULTIPLIER = "production_multiplier"
    DAMAGE_MULTIPLIER = "damage_multiplier"


@dataclass(frozen=True)
class SynergyRequirement:
    building_id: str
    min_workers: int


@dataclass(frozen=True)
class OtherBuildingsRule:
    """Bespoke requirement: ``count`` unlocked buildings, other than the
    ones listed in ``requirements``, each with ``min_workers`` assigned."""

    count: int
    min_workers: int


@dataclass(frozen=True)
class SynergyDefinition:
    """Cross-building bonus unlocked by staffing thresholds.

    Attributes:
        id: Synergy id.
        name: Display name.
        requirements: Fixed ``(building, min_workers)`` pairs.
        effect_type: What the bonus modifies.
        value: Bonus amount (additive share, or factor for upgrade speed).
        other_buildings: Optional "N other qualifying buildings" rule.
    """

    id: str
    name: str
    requirements: tuple[SynergyRequirement, ...]
    effect_type: SynergyEffectType
    value: float
    other_buildings: Optional[OtherBuildingsRule] = None
    description: str = ""


# -- Prestige upgrades ---------------------------------------------------

class PrestigeEffectType(str, Enum):
    PRODUCTION_MULTIPLIER = "production_multiplier"
    AUTO_DAMAGE = "auto_damage"
    TAP_POWER = "tap_power"
    BURST_CHANCE = "burst_chance"
    BURST_DAMAGE = "burst_damage"
    STARTING_SCRAP = "starting_scrap"
    WAVE_REWARDS = "wave_rewards"

    @property
    def is_additive(self) -> bool:
        """Additive kinds fold with ``+`` from 0, the rest with ``*`` from 1."""
        return self in (PrestigeEffectType.BURST_CHANCE, PrestigeEffectType.STARTING_SCRAP)

    @property
    def neutral(self) -> float:
        return 0.0 if self.is_additive else 1.0


@dataclass(frozen=True)
class PrestigeUpgradeDefinition:
    id: str
    name: str
    effect_type: PrestigeEffectType
    base_cost: float
    cost_multiplier: float
    base_effect: float
    effect_per_level: float
    max_level: int
    description: str = ""


@dataclass(frozen=True)
class PrestigeMilestoneTier:
    """Permanent multiplier unlocked by the number of prestiges done."""
    tier: int
    name: str
    prestige_count: int
    multiplier: float


# -- Lucky drops ---------------------------------------------------------

class DropKind(str, Enum):
    SCRAP = "scrap"
    BOOST = "boost"
    BLUEPRINTS = "blueprints"


@dataclass(frozen=True)
class LuckyDropDefinition:
    """Weighted entry of the wave-clear drop table.

    ``min_factor`` / ``max_factor`` scale the enemy reward for scrap drops.
    """

    id: str
    name: str
    kind: DropKind
    weight: float
    min_factor: float = 0.0
    max_factor: float = 0.0
    multiplier: float = 1.0
    duration_ms: float = 0.0
    amount: int = 0
