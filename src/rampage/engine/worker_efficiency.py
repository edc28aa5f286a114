"""Worker efficiency: diminishing returns with milestone breakpoints.

Single source of truth for "how many workers is this building worth".
Production, auto damage, utility outputs and special effects all go
through :func:`calculate_effective_workers`.

Worker ``i`` (1-based) contributes ``1 / (1 + (i - 1) * decay)``, so the
first worker is worth exactly one and every later one is worth less.
Reaching a milestone worker count multiplies the whole sum by
``1 + sum(reached milestone bonuses)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from rampage.loaders.game_config_loader import EfficiencyConfig


@dataclass(frozen=True)
class EfficiencyResult:
    """Output of :func:`calculate_effective_workers`.

    Attributes:
        effective_workers: ``total_efficiency * milestone_bonus``.
        total_efficiency: Passive baseline plus per-worker contributions.
        milestone_bonus: Multiplier from reached milestones (>= 1).
        average_efficiency: Mean contribution of the assigned workers
            (1.0 with no workers).
    """

    effective_workers: float
    total_efficiency: float
    milestone_bonus: float
    average_efficiency: float


def worker_contribution(position: int, decay: float) -> float:
    """Efficiency of the worker at 1-based ``position``."""
    if position < 1:
        return 0.0
    return 1.0 / (1.0 + (position - 1) * decay)


def milestone_multiplier(assigned: int, milestones: Mapping[int, float]) -> float:
    """``1 + sum`` of the bonuses for every milestone at or below ``assigned``."""
    return 1.0 + sum(bonus for threshold, bonus in milestones.items() if assigned >= threshold)


def calculate_effective_workers(
    assigned: int,
    include_passive: bool = True,
    config: EfficiencyConfig | None = None,
) -> EfficiencyResult:
    """Effective worker value for ``assigned`` workers.

    With ``include_passive`` an idle building still counts as one fully
    efficient worker, on top of any assigned ones.
    """
    if config is None:
        from rampage.loaders.game_config_loader import EfficiencyConfig
        config = EfficiencyConfig()

    assigned = max(0, int(assigned))
    worker_sum = sum(worker_contribution(i, config.decay) for i in range(1, assigned + 1))
    total = worker_sum + (1.0 if include_passive else 0.0)
    bonus = milestone_multiplier(assigned, config.milestones)
    average = worker_sum / assigned if assigned else 1.0
    return EfficiencyResult(
        effective_workers=total * bonus,
        total_efficiency=total,
        milestone_bonus=bonus,
        average_efficiency=average,
    )


def effective_workers(assigned: int, include_passive: bool = True,
                      config: EfficiencyConfig | None = None) -> float:
    """Shorthand for ``calculate_effective_workers(...).effective_workers``."""
    return calculate_effective_workers(assigned, include_passive, config).effective_workers


def next_milestone(assigned: int, milestones: Mapping[int, float]) -> int | None:
    """Smallest milestone threshold above ``assigned``, if any."""
    upcoming = [t for t in milestones if t > assigned]
    return min(upcoming) if upcoming else None
