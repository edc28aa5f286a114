"""Typed event bus: fire-and-forget notifications for UI and analytics.

Systems never hold a reference to their listeners; a ``GameSession``
owns one ``EventBus`` and passes it to every system it creates.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

T = TypeVar("T")


# -- Wave events ---------------------------------------------------------

@dataclass(frozen=True)
class WaveCleared:
    """The current enemy was defeated and the wave reward paid."""
    wave: int
    reward: int
    is_boss: bool


@dataclass(frozen=True)
class WaveFailed:
    """The wave timer ran out; the same wave restarts."""
    wave: int


@dataclass(frozen=True)
class WaveExtended:
    """A wave-extend roll added seconds to the next wave timer."""
    wave: int
    bonus_seconds: float


@dataclass(frozen=True)
class MilestoneReached:
    """The highest wave ever reached crossed a milestone (every 10 waves)."""
    wave: int


# -- Combat events -------------------------------------------------------

@dataclass(frozen=True)
class EnemyDamaged:
    damage: int
    remaining_health: float
    is_burst: bool


@dataclass(frozen=True)
class EnemyDefeated:
    enemy_id: str
    wave: int
    reward: int


@dataclass(frozen=True)
class TapRegistered:
    """A tap landed on the enemy."""
    damage: int
    is_burst: bool
    is_weak_point: bool
    is_critical: bool


@dataclass(frozen=True)
class BurstAttack:
    damage: int
    multiplier: float


# -- Economy events ------------------------------------------------------

@dataclass(frozen=True)
class ResourceGained:
    """Scrap was credited to the player.

    ``source`` is one of ``production``, ``damage``, ``wave``, ``scrap_find``,
    ``lucky_drop`` or ``offline``.
    """
    amount: int
    source: str


@dataclass(frozen=True)
class ScrapFound:
    building_id: str
    amount: int


@dataclass(frozen=True)
class LuckyDrop:
    drop_id: str
    scrap: int = 0
    blueprints: int = 0
    boost_multiplier: float = 0.0
    boost_duration_ms: float = 0.0


@dataclass(frozen=True)
class BoostApplied:
    boost_id: str
    multiplier: float
    duration_ms: float


# -- Building events -----------------------------------------------------

@dataclass(frozen=True)
class BuildingUpgraded:
    building_id: str
    new_level: int
    cost: int


@dataclass(frozen=True)
class BuildingEvolved:
    """A wave threshold moved a building to a higher evolution tier."""
    building_id: str
    old_tier: int
    new_tier: int


@dataclass(frozen=True)
class BuildingUnlocked:
    building_id: str
    wave: int


@dataclass(frozen=True)
class BuilderAssigned:
    """Builder allocation changed; ``delta`` is +1 or -1."""
    building_id: str
    assigned: int
    delta: int


# -- Meta events ---------------------------------------------------------

@dataclass(frozen=True)
class PrestigeTriggered:
    blueprints_earned: int
    prestige_count: int
    wave_reached: int


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Synchronous publish/subscribe dispatch keyed on the event class.

    Usage:
        bus = EventBus()
        bus.on(WaveCleared, lambda e: print(e.wave, e.reward))
        bus.emit(WaveCleared(wave=3, reward=120, is_boss=False))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)
        self._catch_all: list[Callable[[Any], None]] = []

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def on_any(self, handler: Callable[[Any], None]) -> None:
        """Register a handler that receives every emitted event."""
        self._catch_all.append(handler)

    def off(self, event_type: Optional[Type[T]], handler: Callable[[T], None]) -> None:
        """Unregister a handler. ``event_type=None`` removes a catch-all handler."""
        handlers = self._catch_all if event_type is None else self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Dispatch an event to its typed handlers, then to catch-all handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)
        for handler in self._catch_all:
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        self._catch_all.clear()
