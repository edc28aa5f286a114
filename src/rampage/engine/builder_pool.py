"""Builder pool: authoritative ledger of builder allocation.

Keeps ``sum(assigned) + available == total`` after every operation and
never lets a building exceed its per-type cap.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from rampage.util.events import BuilderAssigned
from rampage.util.results import ActionResult, fail, ok

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.models.building import BuildingInstance
    from rampage.models.game_state import GameState
    from rampage.util.events import EventBus

log = logging.getLogger(__name__)


class BuilderPool:
    """Assigns and releases builders on a :class:`GameState`.

    Args:
        catalog: Building definitions (caps, ``no_workers``).
        event_bus: Optional sink for :class:`BuilderAssigned`.
    """

    def __init__(self, catalog: Catalog, event_bus: EventBus | None = None) -> None:
        self._catalog = catalog
        self._events = event_bus

    # -- Queries ---------------------------------------------------------

    def max_for(self, building: BuildingInstance) -> int:
        definition = self._catalog.get_building(building.type_id)
        return definition.max_builders if definition else 0

    def can_assign(self, state: GameState, building_id: str) -> Optional[str]:
        """Return why a builder cannot go to ``building_id``, or None."""
        building = state.get_building(building_id)
        if building is None:
            return f"Unknown building: {building_id}"
        definition = self._catalog.get_building(building.type_id)
        if definition is None:
            return f"Unknown building type: {building.type_id}"
        if not building.is_unlocked:
            return f"{building.id} is locked"
        if definition.no_workers:
            return f"{building.id} does not use builders"
        if state.player.builders.available <= 0:
            return "No builders available"
        if building.assigned_builders >= definition.max_builders:
            return f"{building.id} is at its builder limit ({definition.max_builders})"
        return None

    # -- Actions ---------------------------------------------------------

    def assign(self, state: GameState, building_id: str) -> ActionResult:
        """Move one available builder onto a building."""
        reason = self.can_assign(state, building_id)
        if reason is not None:
            return fail(reason)
        building = state.get_building(building_id)
        building.assigned_builders += 1
        state.player.builders.available -= 1
        self._emit(building, +1)
        return ok(f"Assigned builder to {building.id}", assigned=building.assigned_builders)

    def unassign(self, state: GameState, building_id: str) -> ActionResult:
        """Release one builder from a building back to the pool."""
        building = state.get_building(building_id)
        if building is None:
            return fail(f"Unknown building: {building_id}")
        if building.assigned_builders <= 0:
            return fail(f"{building.id} has no builders assigned")
        building.assigned_builders -= 1
        state.player.builders.available += 1
        self._emit(building, -1)
        return ok(f"Unassigned builder from {building.id}", assigned=building.assigned_builders)

    def reassign(self, state: GameState, from_id: str, to_id: str) -> ActionResult:
        """Move one builder between buildings; rolls back if the target refuses."""
        released = self.unassign(state, from_id)
        if not released:
            return released
        placed = self.assign(state, to_id)
        if not placed:
            source = state.get_building(from_id)
            source.assigned_builders += 1
            state.player.builders.available -= 1
            self._emit(source, +1)
            return fail(f"Reassign failed: {placed.message}")
        return ok(f"Moved builder from {from_id} to {to_id}")

    def add_builders(self, state: GameState, count: int) -> ActionResult:
        """Grant ``count`` new builders, bounded by ``max_builders``."""
        builders = state.player.builders
        if count <= 0:
            return fail("Builder count must be positive")
        room = builders.max_builders - builders.total
        if room <= 0:
            return fail(f"Builder cap reached ({builders.max_builders})")
        added = min(count, room)
        builders.total += added
        builders.available += added
        log.info("Added %d builders (total=%d)", added, builders.total)
        return ok(f"Added {added} builders", added=added, total=builders.total)

    def reset_all_assignments(self, state: GameState) -> None:
        """Return every assigned builder to the pool."""
        for building in state.buildings:
            building.assigned_builders = 0
        state.player.builders.available = state.player.builders.total

    def validate_consistency(self, state: GameState) -> bool:
        """Check the ledger and per-building caps."""
        builders = state.player.builders
        if state.assigned_total + builders.available != builders.total:
            return False
        if builders.available < 0:
            return False
        return all(
            0 <= b.assigned_builders <= self.max_for(b)
            for b in state.buildings
        )

    def _emit(self, building: BuildingInstance, delta: int) -> None:
        if self._events is not None:
            self._events.emit(BuilderAssigned(
                building_id=building.id,
                assigned=building.assigned_builders,
                delta=delta,
            ))
