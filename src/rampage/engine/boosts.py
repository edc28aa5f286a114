"""Boost helpers: timed multipliers combined multiplicatively and capped."""

from __future__ import annotations

from typing import Iterable

from rampage.models.player import Boost, PlayerState

DEFAULT_MAX_BOOST = 10.0


def combined_boost_multiplier(boosts: Iterable[Boost], cap: float = DEFAULT_MAX_BOOST) -> float:
    """Product of every active boost, never above ``cap``."""
    total = 1.0
    for boost in boosts:
        if not boost.expired:
            total *= boost.multiplier
    return min(cap, total)


def tick_boosts(boosts: Iterable[Boost], delta_ms: float) -> list[Boost]:
    """Return the boosts still running after ``delta_ms``."""
    if delta_ms <= 0:
        return [b for b in boosts if not b.expired]
    remaining = []
    for boost in boosts:
        left = boost.remaining_duration_ms - delta_ms
        if left > 0:
            remaining.append(Boost(boost.id, boost.multiplier, left))
    return remaining


def add_boost(player: PlayerState, boost_id: str, multiplier: float, duration_ms: float) -> Boost:
    """Grant a boost; re-granting an active id refreshes it instead of stacking."""
    for index, boost in enumerate(player.active_boosts):
        if boost.id == boost_id:
            refreshed = Boost(
                boost_id,
                max(boost.multiplier, multiplier),
                max(boost.remaining_duration_ms, duration_ms),
            )
            player.active_boosts[index] = refreshed
            return refreshed
    boost = Boost(boost_id, multiplier, duration_ms)
    player.active_boosts.append(boost)
    return boost
