"""Tests for building-gated special effects."""

from pathlib import Path

import pytest

from rampage.engine.catalog import Catalog
from rampage.engine.prestige import PrestigeBonuses
from rampage.engine.special_effects import (
    SpecialEffectsSystem,
    burst_boost,
    critical_weakness_chance,
    scrap_find_amount,
    scrap_find_cooldown,
    wave_extend_bonus,
    wave_extend_chance,
)
from rampage.loaders.catalog_loader import load_catalogs
from rampage.loaders.game_config_loader import GameConfig
from rampage.models.building import SpecialEffectType
from rampage.models.game_state import create_initial_state

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class _ScriptedRng:
    def __init__(self, randoms=()):
        self._randoms = list(randoms)

    def random(self):
        return self._randoms.pop(0) if self._randoms else 0.5

    def uniform(self, a, b):
        return (a + b) / 2


def _make_system(rng=None):
    catalog = Catalog(load_catalogs(CONFIG_DIR))
    state = create_initial_state(catalog.buildings.values(), GameConfig())
    return SpecialEffectsSystem(catalog, GameConfig(), rng or _ScriptedRng()), state


class TestFormulas:
    def test_scrap_find_cooldown(self):
        assert scrap_find_cooldown(1, 0) == 30_000
        assert scrap_find_cooldown(3, 5) == 28_000
        assert scrap_find_cooldown(1, 200) == 10_000

    def test_scrap_find_amount_by_tier(self):
        assert scrap_find_amount(1000, 1) == 200
        assert scrap_find_amount(1000, 2) == 250
        assert scrap_find_amount(1000, 9) == 400

    def test_burst_boost_capped(self):
        assert burst_boost(1, 0, 1) == pytest.approx(0.02)
        assert burst_boost(100, 50, 5) == 0.5

    def test_critical_weakness_chance(self):
        assert critical_weakness_chance(1, 0, 1) == pytest.approx(0.05)
        assert critical_weakness_chance(200, 30, 5) == 0.75

    def test_wave_extend(self):
        assert wave_extend_chance(1, 2) == pytest.approx(0.15)
        assert wave_extend_chance(100, 5) == 0.9
        assert wave_extend_bonus(20) == pytest.approx(10.0)
        assert wave_extend_bonus(100) == 30.0


class TestEligibility:
    def test_only_unlocked_buildings_with_effect(self):
        system, state = _make_system()
        eligible = system.eligible_buildings(state, SpecialEffectType.SCRAP_FIND)
        assert [b.id for b in eligible] == ["scrap_works_1"]
        assert system.eligible_buildings(state, SpecialEffectType.BURST_BOOST) == []

    def test_effect_follows_tier(self):
        system, state = _make_system()
        scanner = state.get_building("weak_point_scanner")
        scanner.is_unlocked = True
        assert system.eligible_buildings(state, SpecialEffectType.CRITICAL_WEAKNESS) == []
        scanner.evolution_tier = 2
        assert system.eligible_buildings(state, SpecialEffectType.CRITICAL_WEAKNESS) == [scanner]


class TestScrapFind:
    def test_waits_for_cooldown(self):
        system, state = _make_system()
        assert not system.process_scrap_find(state, 100).triggered
        state.special_effects.clock_ms = 29_999
        assert not system.process_scrap_find(state, 100).triggered

    def test_triggers_after_cooldown(self):
        system, state = _make_system()
        state.special_effects.clock_ms = 30_000
        found = system.process_scrap_find(state, 100)
        assert found.triggered
        assert found.amount == 20
        assert found.building_id == "scrap_works_1"
        assert state.special_effects.last_scrap_find_ms == 30_000
        assert not system.process_scrap_find(state, 100).triggered

    def test_prestige_scales_amount(self):
        system, state = _make_system()
        state.special_effects.clock_ms = 30_000
        prestige = PrestigeBonuses(production_multiplier=2.0)
        assert system.process_scrap_find(state, 100, prestige).amount == 40

    def test_no_eligible_building(self):
        system, state = _make_system()
        state.get_building("scrap_works").is_unlocked = False
        state.special_effects.clock_ms = 60_000
        assert not system.process_scrap_find(state, 100).triggered


class TestBurstBoost:
    def test_locked_facility_gives_nothing(self):
        system, state = _make_system()
        assert system.total_burst_boost(state) == 0.0

    def test_unlocked_facility(self):
        system, state = _make_system()
        facility = state.get_building("training_facility")
        facility.is_unlocked = True
        facility.assigned_builders = 5
        assert system.total_burst_boost(state) == pytest.approx(0.03)


class TestCriticalWeakness:
    def test_without_scanner(self):
        system, state = _make_system(_ScriptedRng([0.0]))
        assert not system.roll_critical_weakness(state).triggered

    def test_triggered(self):
        system, state = _make_system(_ScriptedRng([0.0]))
        scanner = state.get_building("weak_point_scanner")
        scanner.is_unlocked = True
        scanner.evolution_tier = 2
        roll = system.roll_critical_weakness(state)
        assert roll.triggered
        assert roll.chance == pytest.approx(0.08)
        assert roll.value == 5.0

    def test_missed(self):
        system, state = _make_system(_ScriptedRng([0.99]))
        scanner = state.get_building("weak_point_scanner")
        scanner.is_unlocked = True
        scanner.evolution_tier = 2
        roll = system.roll_critical_weakness(state)
        assert not roll.triggered
        assert roll.value == 1.0


class TestWaveExtend:
    def test_extends_timer(self):
        system, state = _make_system(_ScriptedRng([0.0]))
        shield = state.get_building("shield_generator")
        shield.is_unlocked = True
        shield.evolution_tier = 2
        roll = system.check_wave_extension(state, 20.0)
        assert roll.triggered
        assert roll.value == pytest.approx(10.0)

    def test_first_tier_shield_cannot_extend(self):
        system, state = _make_system(_ScriptedRng([0.0]))
        state.get_building("shield_generator").is_unlocked = True
        assert not system.check_wave_extension(state, 20.0).triggered

    def test_roll_missed(self):
        system, state = _make_system(_ScriptedRng([0.5]))
        shield = state.get_building("shield_generator")
        shield.is_unlocked = True
        shield.evolution_tier = 2
        assert not system.check_wave_extension(state, 20.0).triggered
