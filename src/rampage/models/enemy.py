"""Enemy models: tier definitions, final bosses and the live enemy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rampage.models.upgrades import DropKind


@dataclass(frozen=True)
class EnemyTier:
    """Geometric scaling band for a range of waves.

    Attributes:
        id: Tier id (``scrap_bot``, ``drone``, ...).
        name: Display name.
        min_wave: First wave of the band.
        max_wave: Last wave of the band; ``None`` means open-ended.
        base_health: Health at ``min_wave``.
        health_multiplier: Per-wave health growth inside the band.
        base_reward: Reward at ``min_wave``.
        reward_multiplier: Per-wave reward growth inside the band.
    """

    id: str
    name: str
    min_wave: int
    max_wave: Optional[int]
    base_health: float
    health_multiplier: float
    base_reward: float
    reward_multiplier: float

    def contains(self, wave: int) -> bool:
        return wave >= self.min_wave and (self.max_wave is None or wave <= self.max_wave)


@dataclass(frozen=True)
class FinalBossDrop:
    """Guaranteed reward for beating a final boss.

    ``kind`` is a boost (uses multiplier/duration_ms) or blueprints
    (uses amount).
    """

    kind: DropKind
    amount: int = 0
    multiplier: float = 1.0
    duration_ms: float = 0.0


@dataclass(frozen=True)
class FinalBoss:
    """A named boss that replaces normal spawning on one specific wave."""

    wave: int
    id: str
    name: str
    health: float
    reward: float
    timer_seconds: float
    drop: Optional[FinalBossDrop] = None


@dataclass
class Enemy:
    """The enemy currently being fought.

    Attributes:
        id: Unique enemy id for this spawn.
        tier_id: Source tier (or final boss id).
        name: Display name (boss waves carry an " Alpha" suffix).
        current_health: Remaining health; defeated at <= 0.
        max_health: Health at spawn.
        reward: Intrinsic scrap reward.
        wave: Wave this enemy belongs to.
        is_boss: Every Nth wave and every final boss.
        is_final_boss: One of the fixed end-game bosses.
    """

    id: str
    tier_id: str
    name: str
    current_health: float
    max_health: float
    reward: int
    wave: int
    is_boss: bool = False
    is_final_boss: bool = False

    @property
    def is_defeated(self) -> bool:
        return self.current_health <= 0

    @property
    def health_fraction(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return max(0.0, self.current_health) / self.max_health
