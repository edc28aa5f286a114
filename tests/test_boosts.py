"""Tests for timed boosts."""

import pytest

from rampage.engine.boosts import add_boost, combined_boost_multiplier, tick_boosts
from rampage.models.player import Boost, PlayerState


class TestCombined:
    def test_no_boosts_is_neutral(self):
        assert combined_boost_multiplier([]) == 1.0

    def test_boosts_multiply(self):
        boosts = [Boost("a", 2.0, 1000), Boost("b", 3.0, 1000)]
        assert combined_boost_multiplier(boosts) == pytest.approx(6.0)

    def test_capped_at_ten(self):
        boosts = [Boost("a", 5.0, 1000), Boost("b", 5.0, 1000)]
        assert combined_boost_multiplier(boosts) == 10.0

    def test_expired_ignored(self):
        boosts = [Boost("a", 2.0, 0), Boost("b", 3.0, 1000)]
        assert combined_boost_multiplier(boosts) == pytest.approx(3.0)


class TestTick:
    def test_decrements_and_drops_expired(self):
        boosts = [Boost("a", 2.0, 500), Boost("b", 3.0, 1500)]
        remaining = tick_boosts(boosts, 1000)
        assert [b.id for b in remaining] == ["b"]
        assert remaining[0].remaining_duration_ms == pytest.approx(500)

    def test_exact_expiry_removes(self):
        assert tick_boosts([Boost("a", 2.0, 1000)], 1000) == []

    def test_zero_delta_keeps_active(self):
        boosts = [Boost("a", 2.0, 1000)]
        assert tick_boosts(boosts, 0) == boosts


class TestAdd:
    def test_new_boost_appended(self):
        player = PlayerState()
        add_boost(player, "purchase", 2.0, 30_000)
        assert player.active_boosts == [Boost("purchase", 2.0, 30_000)]

    def test_same_id_refreshes_instead_of_stacking(self):
        player = PlayerState()
        add_boost(player, "purchase", 2.0, 30_000)
        refreshed = add_boost(player, "purchase", 1.5, 60_000)
        assert len(player.active_boosts) == 1
        assert refreshed.multiplier == 2.0
        assert refreshed.remaining_duration_ms == 60_000
