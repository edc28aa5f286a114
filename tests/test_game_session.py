"""Integration tests for the game session: tick order, wave flow and player actions."""

import random
from pathlib import Path

import pytest

from rampage.engine.catalog import Catalog
from rampage.engine.game_session import GameSession
from rampage.loaders.catalog_loader import load_catalogs
from rampage.loaders.game_config_loader import GameConfig
from rampage.persistence.state_save import snapshot_state
from rampage.util.events import BuildingUpgraded, EventBus, ResourceGained, WaveCleared, WaveFailed

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _make_session(seed: int = 1, event_bus=None) -> GameSession:
    catalog = Catalog(load_catalogs(CONFIG_DIR))
    return GameSession(catalog, GameConfig(), event_bus=event_bus, rng=random.Random(seed))


def _tap_until_defeated(session: GameSession) -> None:
    for _ in range(1000):
        enemy = session.state.combat.current_enemy
        if enemy is not None and enemy.is_defeated:
            return
        session.tap()
    raise AssertionError("enemy survived 1000 taps")


class TestTick:
    def test_first_tick_spawns_wave(self):
        session = _make_session()
        session.tick(100)
        combat = session.state.combat
        assert combat.is_active
        assert combat.current_enemy.wave == 1
        assert combat.wave_timer_max == pytest.approx(20.2)
        assert combat.wave_timer == pytest.approx(20.1)

    def test_production_credits_scrap(self):
        bus = EventBus()
        gained = []
        bus.on(ResourceGained, gained.append)
        session = _make_session(event_bus=bus)
        result = session.tick(1000)
        assert result.produced == 1
        assert session.state.player.scrap == 101
        assert ResourceGained(amount=1, source="production") in gained

    def test_non_positive_delta_is_noop(self):
        session = _make_session()
        session.tick(0)
        session.tick(-50)
        assert not session.state.combat.is_active
        assert session.state.special_effects.clock_ms == 0

    def test_clock_advances(self):
        session = _make_session()
        session.tick(250)
        session.tick(250)
        assert session.state.special_effects.clock_ms == 500

    def test_boosts_decay(self):
        session = _make_session()
        session.apply_boost(2.0, 1000)
        assert session.boost_multiplier() == 2.0
        session.tick(1000)
        assert session.state.player.active_boosts == []
        assert session.boost_multiplier() == 1.0


class TestWaveFlow:
    def test_tap_kill_resolved_on_next_tick(self):
        bus = EventBus()
        cleared = []
        bus.on(WaveCleared, cleared.append)
        session = _make_session(event_bus=bus)
        _tap_until_defeated(session)
        assert session.state.current_wave == 1
        result = session.tick(100)
        assert result.wave_cleared
        assert result.wave_reward == 56
        assert session.state.current_wave == 2
        assert session.state.player.total_enemies_defeated == 1
        assert session.state.combat.current_enemy.wave == 2
        assert cleared == [WaveCleared(wave=1, reward=56, is_boss=False)]

    def test_timer_expiry_retries_wave(self):
        bus = EventBus()
        failed = []
        bus.on(WaveFailed, failed.append)
        session = _make_session(event_bus=bus)
        session.tick(100)
        session.state.combat.current_enemy.current_health = 50
        session.state.combat.wave_timer = 0.05
        result = session.tick(100)
        assert result.wave_failed
        assert session.state.current_wave == 1
        enemy = session.state.combat.current_enemy
        assert enemy.current_health == enemy.max_health
        assert session.state.combat.wave_timer == pytest.approx(20.2)
        assert failed == [WaveFailed(wave=1)]

    def test_auto_kill_synergy_bonus(self):
        session = _make_session()
        session.grant_builders(5)
        session.state.get_building("turret_station").is_unlocked = True
        for _ in range(5):
            session.assign_builder("turret_station")
            session.assign_builder("scrap_works")
        session.tick(100)
        session.state.combat.current_enemy.current_health = 0.01
        result = session.tick(100)
        assert result.wave_cleared
        assert result.wave_reward == 84

    def test_tap_kill_skips_auto_kill_bonus(self):
        session = _make_session()
        session.grant_builders(5)
        session.state.get_building("turret_station").is_unlocked = True
        for _ in range(5):
            session.assign_builder("turret_station")
            session.assign_builder("scrap_works")
        session.tick(100)
        session.state.combat.current_enemy.current_health = 1
        session.tap()
        result = session.tick(100)
        assert result.wave_cleared
        assert result.wave_reward == 56

    def test_final_boss_grants_loot(self):
        session = _make_session()
        session.state.current_wave = 96
        session.start_wave()
        assert session.state.combat.current_enemy.is_final_boss
        session.state.combat.current_enemy.current_health = 0
        result = session.tick(100)
        assert result.wave_cleared
        assert session.state.current_wave == 97
        assert "sentinel_prime_drop" in {b.id for b in session.state.player.active_boosts}

    def test_shield_extends_timer(self):
        session = _make_session()
        session.state.get_building("shield_generator").is_unlocked = True
        session.start_wave()
        assert session.state.combat.wave_timer == pytest.approx(25.2)


class TestActions:
    def test_upgrade_building(self):
        bus = EventBus()
        upgrades = []
        bus.on(BuildingUpgraded, upgrades.append)
        session = _make_session(event_bus=bus)
        result = session.upgrade_building("scrap_works")
        assert result.success
        assert result.data == {"level": 2, "cost": 10}
        assert session.state.player.scrap == 90
        assert upgrades == [BuildingUpgraded(building_id="scrap_works_1", new_level=2, cost=10)]

    def test_upgrade_failures_change_nothing(self):
        session = _make_session()
        assert not session.upgrade_building("nope")
        assert not session.upgrade_building("turret_station")
        session.state.player.scrap = 5
        result = session.upgrade_building("scrap_works")
        assert not result.success
        assert result.data["cost"] == 10
        assert session.state.player.scrap == 5
        assert session.state.get_building("scrap_works").level == 1

    def test_upgrade_cost_query(self):
        session = _make_session()
        assert session.upgrade_cost("scrap_works") == 10
        assert session.upgrade_cost("nope") is None

    def test_tap_starts_wave(self):
        session = _make_session()
        result = session.tap()
        assert result.success
        assert session.state.combat.is_active
        assert 4 <= result.data["damage"] <= 5
        assert session.state.player.total_taps == 1

    def test_builder_actions_keep_ledger(self):
        session = _make_session()
        session.state.get_building("turret_station").is_unlocked = True
        assert session.assign_builder("scrap_works")
        assert session.reassign_builder("scrap_works", "turret_station")
        assert session.unassign_builder("turret_station")
        assert session.builders.validate_consistency(session.state)

    def test_apply_boost_validation(self):
        session = _make_session()
        assert not session.apply_boost(0, 1000)
        assert not session.apply_boost(2.0, 0)
        result = session.apply_boost(2.0, 5000, "gift")
        assert result.data["boost_id"] == "gift"

    def test_offline_progress(self):
        session = _make_session()
        result = session.apply_offline_progress(100)
        assert result.success
        assert result.data["amount"] == 57
        assert session.state.player.scrap == 157
        assert not session.apply_offline_progress(0)

    def test_prestige_flow(self):
        session = _make_session()
        assert not session.execute_prestige()
        session.state.current_wave = 100
        result = session.execute_prestige()
        assert result.success
        assert session.state.player.blueprints == 100
        assert session.purchase_upgrade("production_boost")
        assert session.prestige_bonuses().production_multiplier == pytest.approx(1.1)
        assert session.tier_multiplier() == 1.2
        session.tick(100)
        assert session.state.combat.current_enemy.wave == 1

    def test_purchase_builder(self):
        session = _make_session()
        session.state.player.blueprints = 30
        assert session.purchase_builder()
        assert session.state.player.builders.total == 6


class TestDerived:
    def test_fresh_game(self):
        session = _make_session()
        derived = session.derived()
        assert derived["wave"] == 1
        assert derived["enemy"] is None
        assert derived["production_per_second"] == pytest.approx(1.150515, rel=1e-4)
        assert derived["auto_damage_per_second"] == 0.0
        assert derived["synergies"] == []
        assert derived["next_synergy"] is None
        assert derived["prestige"]["can_prestige"] is False

    def test_enemy_after_spawn(self):
        session = _make_session()
        session.tick(100)
        enemy = session.derived()["enemy"]
        assert enemy["max_health"] == 100
        assert enemy["is_boss"] is False


class TestDeterminism:
    def _play(self, seed: int) -> dict:
        session = _make_session(seed)
        session.grant_builders(5)
        session.state.get_building("turret_station").is_unlocked = True
        for _ in range(5):
            session.assign_builder("turret_station")
        session.state.combat.burst_chance = 0.3
        for step in range(600):
            if step % 7 == 0:
                session.tap(on_weak_point=step % 2 == 0)
            session.tick(100)
        snapshot = snapshot_state(session.state)
        snapshot.pop("meta")
        return snapshot

    def test_same_seed_same_state(self):
        assert self._play(42) == self._play(42)
