"""Tests for the wave manager: spawning, bosses, timers, rewards, wave advance."""

from pathlib import Path

import pytest

from rampage.engine.catalog import Catalog
from rampage.engine.wave_manager import WaveManager, scaled_stat
from rampage.loaders.catalog_loader import load_catalogs, parse_catalogs
from rampage.loaders.game_config_loader import GameConfig
from rampage.models.game_state import create_initial_state
from rampage.util.events import BuildingEvolved, BuildingUnlocked, EventBus, MilestoneReached

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _make_catalog() -> Catalog:
    return Catalog(load_catalogs(CONFIG_DIR))


def _make_inline_catalog() -> Catalog:
    return Catalog(parse_catalogs({
        "enemies": {
            "tiers": {
                "grunt": {"name": "Grunt", "min_wave": 1, "max_wave": 10, "base_health": 100,
                          "health_multiplier": 2, "base_reward": 10, "reward_multiplier": 1},
                "brute": {"name": "Brute", "min_wave": 11, "max_wave": 20, "base_health": 400,
                          "health_multiplier": 1.55, "base_reward": 50, "reward_multiplier": 1},
            },
        },
    }))


class TestSpawning:
    def test_tier_start_uses_base_stats(self):
        waves = WaveManager(_make_inline_catalog())
        enemy = waves.spawn_enemy_for_wave(11)
        assert enemy.tier_id == "brute"
        assert enemy.max_health == 400
        assert enemy.current_health == enemy.max_health
        assert enemy.reward == 50

    def test_geometric_scaling_within_tier(self):
        waves = WaveManager(_make_inline_catalog())
        assert waves.spawn_enemy_for_wave(12).max_health == 620

    def test_scaled_stat_floors(self):
        assert scaled_stat(400, 1.55, 1, 1) == 400
        assert scaled_stat(400, 1.55, 2, 1) == 620
        assert scaled_stat(10, 1.25, 2, 1) == 12

    def test_boss_wave(self):
        waves = WaveManager(_make_inline_catalog())
        enemy = waves.spawn_enemy_for_wave(10)
        assert enemy.is_boss
        assert not enemy.is_final_boss
        assert enemy.max_health == 100 * 2 ** 9 * 3
        assert enemy.reward == 50
        assert enemy.name == "Grunt Alpha"

    def test_regular_wave_is_not_boss(self):
        waves = WaveManager(_make_inline_catalog())
        enemy = waves.spawn_enemy_for_wave(9)
        assert not enemy.is_boss
        assert enemy.name == "Grunt"

    def test_wave_past_every_tier_uses_last(self):
        waves = WaveManager(_make_inline_catalog())
        assert waves.spawn_enemy_for_wave(25).tier_id == "brute"

    def test_final_boss_overrides_spawn(self):
        waves = WaveManager(_make_catalog())
        enemy = waves.spawn_enemy_for_wave(96)
        assert enemy.tier_id == "sentinel_prime"
        assert enemy.name == "Sentinel Prime"
        assert enemy.max_health == 500000
        assert enemy.is_boss and enemy.is_final_boss

    def test_real_catalog_first_wave(self):
        enemy = WaveManager(_make_catalog()).spawn_enemy_for_wave(1)
        assert enemy.tier_id == "scrap_bot"
        assert enemy.max_health == 100
        assert enemy.reward == 10

    def test_spawn_ids_are_unique(self):
        waves = WaveManager(_make_inline_catalog())
        ids = {waves.spawn_enemy_for_wave(1).id for _ in range(5)}
        assert len(ids) == 5

    def test_empty_catalog_spawns_placeholder(self):
        enemy = WaveManager(Catalog()).spawn_enemy_for_wave(3)
        assert enemy.tier_id == "unknown"
        assert enemy.max_health > 0


class TestTimer:
    def test_grows_with_wave(self):
        waves = WaveManager(Catalog())
        assert waves.calculate_wave_timer(1) == pytest.approx(20.2)
        assert waves.calculate_wave_timer(50) == pytest.approx(30.0)

    def test_bounded(self):
        waves = WaveManager(Catalog())
        assert waves.calculate_wave_timer(200) == 60.0
        assert waves.calculate_wave_timer(10_000) == 60.0

    def test_non_decreasing(self):
        waves = WaveManager(Catalog())
        timers = [waves.calculate_wave_timer(w) for w in range(1, 300)]
        for a, b in zip(timers, timers[1:]):
            assert b >= a

    def test_boss_timer_longer(self):
        waves = WaveManager(_make_inline_catalog())
        assert waves.spawn_timer(10) == pytest.approx(33.0)
        assert waves.spawn_timer(9) == pytest.approx(21.8)

    def test_final_boss_timer(self):
        assert WaveManager(_make_catalog()).spawn_timer(100) == 180


class TestReward:
    def test_first_wave(self):
        reward = WaveManager(Catalog()).calculate_wave_reward(1, 10)
        assert reward.bonus_scrap == 51
        assert reward.step_multiplier == 1.0
        assert reward.total == 61

    def test_step_multiplier_applied(self):
        reward = WaveManager(Catalog()).calculate_wave_reward(10, 0)
        assert reward.bonus_scrap == 531
        assert reward.step_multiplier == 1.5
        assert reward.total == 796

    def test_prestige_and_boost_multiply(self):
        reward = WaveManager(Catalog()).calculate_wave_reward(1, 10, prestige_bonus=2.0, boost_multiplier=2.0)
        assert reward.total == 244

    def test_step_multiplier_capped(self):
        waves = WaveManager(Catalog())
        assert waves.reward_step_multiplier(9) == 1.0
        assert waves.reward_step_multiplier(20) == 2.0
        assert waves.reward_step_multiplier(200) == 10.0
        assert waves.reward_step_multiplier(5000) == 10.0

    def test_reward_grows_with_wave(self):
        waves = WaveManager(Catalog())
        totals = [waves.calculate_wave_reward(w, 10).total for w in range(1, 120)]
        for a, b in zip(totals, totals[1:]):
            assert b > a


class TestAdvance:
    def test_unlocks_buildings(self):
        bus = EventBus()
        unlocked = []
        bus.on(BuildingUnlocked, unlocked.append)
        catalog = _make_catalog()
        state = create_initial_state(catalog.buildings.values(), GameConfig())
        waves = WaveManager(catalog, event_bus=bus)
        state.current_wave = 2
        waves.advance_wave(state)
        assert state.current_wave == 3
        assert state.get_building("turret_station").is_unlocked
        assert unlocked == [BuildingUnlocked(building_id="turret_station_1", wave=3)]

    def test_evolves_buildings(self):
        bus = EventBus()
        evolved = []
        bus.on(BuildingEvolved, evolved.append)
        catalog = _make_catalog()
        state = create_initial_state(catalog.buildings.values(), GameConfig())
        changes = WaveManager(catalog, event_bus=bus).update_buildings_for_wave(state, 15)
        assert ("scrap_works_1", 1, 2) in changes
        assert state.get_building("scrap_works").evolution_tier == 2
        assert BuildingEvolved(building_id="scrap_works_1", old_tier=1, new_tier=2) in evolved

    def test_tier_never_decreases(self):
        catalog = _make_catalog()
        state = create_initial_state(catalog.buildings.values(), GameConfig())
        works = state.get_building("scrap_works")
        works.evolution_tier = 3
        assert WaveManager(catalog).update_buildings_for_wave(state, 1) == []
        assert works.evolution_tier == 3

    def test_milestone_on_new_highest(self):
        bus = EventBus()
        milestones = []
        bus.on(MilestoneReached, milestones.append)
        catalog = _make_catalog()
        state = create_initial_state(catalog.buildings.values(), GameConfig())
        state.current_wave = 9
        WaveManager(catalog, event_bus=bus).advance_wave(state)
        assert state.player.highest_wave == 10
        assert milestones == [MilestoneReached(wave=10)]

    def test_no_milestone_below_highest(self):
        bus = EventBus()
        milestones = []
        bus.on(MilestoneReached, milestones.append)
        catalog = _make_catalog()
        state = create_initial_state(catalog.buildings.values(), GameConfig())
        state.player.highest_wave = 50
        state.current_wave = 9
        WaveManager(catalog, event_bus=bus).advance_wave(state)
        assert state.player.highest_wave == 50
        assert milestones == []
