"""Lucky drops: weighted bonus rolls on wave clear and final-boss loot."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from rampage.engine.boosts import add_boost
from rampage.models.upgrades import DropKind
from rampage.util.events import BoostApplied, LuckyDrop

if TYPE_CHECKING:
    from rampage.engine.catalog import Catalog
    from rampage.loaders.game_config_loader import GameConfig
    from rampage.models.enemy import FinalBoss
    from rampage.models.game_state import GameState
    from rampage.models.upgrades import LuckyDropDefinition
    from rampage.util.events import EventBus

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropResult:
    """A resolved drop, ready to be granted."""

    drop_id: str
    kind: DropKind
    scrap: int = 0
    blueprints: int = 0
    boost_multiplier: float = 0.0
    boost_duration_ms: float = 0.0


class LuckyDropSystem:
    """Rolls and grants drops.

    Args:
        catalog: Drop table.
        game_config: Drop chance.
        event_bus: Optional sink for :class:`LuckyDrop` / :class:`BoostApplied`.
        rng: Random source for the chance roll, the table pick and scrap factor.
    """

    def __init__(self, catalog: Catalog, game_config: GameConfig | None = None,
                 event_bus: EventBus | None = None, rng: random.Random | None = None) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        self._catalog = catalog
        self._config = game_config or GameConfig()
        self._events = event_bus
        self._rng = rng or random.Random()

    def pick(self) -> Optional[LuckyDropDefinition]:
        """Weighted pick from the drop table."""
        table = [d for d in self._catalog.drops if d.weight > 0]
        if not table:
            return None
        roll = self._rng.random() * sum(d.weight for d in table)
        for drop in table:
            roll -= drop.weight
            if roll < 0:
                return drop
        return table[-1]

    def resolve(self, drop: LuckyDropDefinition, enemy_reward: float) -> DropResult:
        if drop.kind is DropKind.SCRAP:
            factor = self._rng.uniform(drop.min_factor, drop.max_factor)
            return DropResult(drop.id, drop.kind, scrap=int(math.floor(enemy_reward * factor)))
        if drop.kind is DropKind.BOOST:
            return DropResult(drop.id, drop.kind, boost_multiplier=drop.multiplier,
                              boost_duration_ms=drop.duration_ms)
        return DropResult(drop.id, drop.kind, blueprints=drop.amount)

    def roll(self, enemy_reward: float, is_boss: bool = False) -> Optional[DropResult]:
        """Roll for a drop after a wave clear; boss waves always drop."""
        if not is_boss and self._rng.random() >= self._config.lucky_drop_chance:
            return None
        drop = self.pick()
        if drop is None:
            return None
        return self.resolve(drop, enemy_reward)

    @staticmethod
    def final_boss_drop(boss: FinalBoss) -> Optional[DropResult]:
        loot = boss.drop
        if loot is None:
            return None
        drop_id = f"{boss.id}_drop"
        if loot.kind is DropKind.BOOST:
            return DropResult(drop_id, loot.kind, boost_multiplier=loot.multiplier,
                              boost_duration_ms=loot.duration_ms)
        if loot.kind is DropKind.BLUEPRINTS:
            return DropResult(drop_id, loot.kind, blueprints=loot.amount)
        return DropResult(drop_id, loot.kind, scrap=loot.amount)

    def grant(self, state: GameState, result: DropResult) -> None:
        """Credit a drop to the player."""
        player = state.player
        if result.scrap > 0:
            player.add_scrap(result.scrap)
        if result.blueprints > 0:
            player.blueprints += result.blueprints
            player.total_blueprints_earned += result.blueprints
        if result.boost_multiplier > 0 and result.boost_duration_ms > 0:
            add_boost(player, result.drop_id, result.boost_multiplier, result.boost_duration_ms)
            self._emit(BoostApplied(boost_id=result.drop_id, multiplier=result.boost_multiplier,
                                    duration_ms=result.boost_duration_ms))
        log.info("Lucky drop %s (scrap=%d, blueprints=%d, boost=%.1fx)",
                 result.drop_id, result.scrap, result.blueprints, result.boost_multiplier)
        self._emit(LuckyDrop(
            drop_id=result.drop_id,
            scrap=result.scrap,
            blueprints=result.blueprints,
            boost_multiplier=result.boost_multiplier,
            boost_duration_ms=result.boost_duration_ms,
        ))

    def _emit(self, event: object) -> None:
        if self._events is not None:
            self._events.emit(event)
