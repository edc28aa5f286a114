"""Tests for the worker-efficiency calculator."""

import pytest

from rampage.engine.worker_efficiency import (
    calculate_effective_workers,
    effective_workers,
    milestone_multiplier,
    next_milestone,
    worker_contribution,
)
from rampage.loaders.game_config_loader import EfficiencyConfig


class TestWorkerContribution:
    def test_first_worker_is_full(self):
        assert worker_contribution(1, 0.12) == 1.0

    def test_later_workers_decay(self):
        assert worker_contribution(2, 0.12) == pytest.approx(1 / 1.12)
        assert worker_contribution(3, 0.12) < worker_contribution(2, 0.12)

    def test_invalid_position(self):
        assert worker_contribution(0, 0.12) == 0.0


class TestEffectiveWorkers:
    def test_idle_building_counts_passive_baseline(self):
        assert effective_workers(0, include_passive=True) == 1.0

    def test_idle_without_passive_is_zero(self):
        assert effective_workers(0, include_passive=False) == 0.0

    def test_first_worker_doubles_idle_value(self):
        assert effective_workers(1, include_passive=True) == pytest.approx(2.0)

    def test_monotonic(self):
        values = [effective_workers(n) for n in range(0, 40)]
        for a, b in zip(values, values[1:]):
            assert b > a

    def test_diminishing_returns_between_milestones(self):
        cfg = EfficiencyConfig()
        values = [effective_workers(n, config=cfg) for n in range(0, 25)]
        for n in range(2, 24):
            if (n + 1) in cfg.milestones or n in cfg.milestones:
                continue
            assert values[n + 1] - values[n] <= values[n] - values[n - 1] + 1e-9

    def test_milestone_jumps(self):
        before = effective_workers(4) - effective_workers(3)
        at = effective_workers(5) - effective_workers(4)
        assert at > before

    def test_milestone_bonus_applies_to_sum(self):
        result = calculate_effective_workers(5)
        assert result.milestone_bonus == pytest.approx(1.15)
        assert result.effective_workers == pytest.approx(result.total_efficiency * 1.15)

    def test_average_efficiency(self):
        assert calculate_effective_workers(0).average_efficiency == 1.0
        assert calculate_effective_workers(2).average_efficiency == pytest.approx((1 + 1 / 1.12) / 2)

    def test_negative_assigned_clamped(self):
        assert effective_workers(-3) == effective_workers(0)


class TestMilestones:
    def test_multiplier_stacks(self):
        ms = {5: 0.15, 10: 0.25, 20: 0.35}
        assert milestone_multiplier(4, ms) == 1.0
        assert milestone_multiplier(10, ms) == pytest.approx(1.4)
        assert milestone_multiplier(25, ms) == pytest.approx(1.75)

    def test_next_milestone(self):
        ms = {5: 0.15, 10: 0.25}
        assert next_milestone(0, ms) == 5
        assert next_milestone(5, ms) == 10
        assert next_milestone(10, ms) is None
