"""Combat state: one per session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rampage.models.enemy import Enemy


@dataclass
class CombatState:
    """Current fight and its timer.

    Attributes:
        is_active: False until the first enemy is spawned.
        current_enemy: The enemy being fought.
        wave_timer: Seconds left; counted down by the session tick.
        wave_timer_max: Timer value at spawn.
        burst_chance: Base burst probability per tap / tick.
        burst_multiplier: Base burst damage multiplier.
        base_tap_damage: Tap damage before multipliers.
        scrap_progress: Fractional scrap earned from damage, carried to
            the next hit.
        last_hit_source: ``tap`` or ``auto``; decides which kill-scrap
            synergy applies when the enemy is defeated.
    """

    is_active: bool = False
    current_enemy: Optional[Enemy] = None
    wave_timer: float = 0.0
    wave_timer_max: float = 30.0
    burst_chance: float = 0.0
    burst_multiplier: float = 6.0
    base_tap_damage: float = 5.0
    scrap_progress: float = 0.0
    last_hit_source: str = "auto"

    def set_timer(self, seconds: float, ceiling: float) -> None:
        """Start a fresh timer, bounded by ``ceiling``."""
        seconds = max(0.0, min(seconds, ceiling))
        self.wave_timer = seconds
        self.wave_timer_max = seconds

    def count_down(self, seconds: float) -> None:
        self.wave_timer = max(0.0, self.wave_timer - seconds)
