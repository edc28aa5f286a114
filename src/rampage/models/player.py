"""Player model: currencies, builders, prestige progress and boosts."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BuilderCounts:
    """Builder ledger totals.

    Attributes:
        total: Builders owned.
        available: Builders not assigned to any building.
        max_builders: Hard cap on ``total``.
    """

    total: int = 5
    available: int = 5
    max_builders: int = 250


@dataclass
class Boost:
    """A timed multiplier grant (purchase or lucky drop)."""

    id: str
    multiplier: float
    remaining_duration_ms: float

    @property
    def expired(self) -> bool:
        return self.remaining_duration_ms <= 0


@dataclass
class PlayerState:
    """Everything the player owns that is not a building.

    Attributes:
        scrap: Spendable scrap.
        blueprints: Spendable prestige currency.
        total_blueprints_earned: Lifetime blueprints (drives prestige level).
        prestige_count: Number of prestige resets done; never decreases.
        highest_wave: Highest wave ever reached; never decreases.
        builders: Builder ledger totals.
        prestige_upgrades: Upgrade id → owned level.
        active_boosts: Boosts that have not expired yet.
        builders_purchased: Builders bought with blueprints (drives cost).
        total_taps: Lifetime taps in the current run.
        total_enemies_defeated: Enemies defeated in the current run.
        total_scrap_earned: Scrap earned in the current run.
    """

    scrap: float = 0.0
    blueprints: int = 0
    total_blueprints_earned: int = 0
    prestige_count: int = 0
    highest_wave: int = 1
    builders: BuilderCounts = field(default_factory=BuilderCounts)
    prestige_upgrades: dict[str, int] = field(default_factory=dict)
    active_boosts: list[Boost] = field(default_factory=list)
    builders_purchased: int = 0
    total_taps: int = 0
    total_enemies_defeated: int = 0
    total_scrap_earned: int = 0

    def add_scrap(self, amount: float) -> None:
        if amount <= 0:
            return
        self.scrap += amount
        self.total_scrap_earned += int(amount)

    def upgrade_level(self, upgrade_id: str) -> int:
        return self.prestige_upgrades.get(upgrade_id, 0)
