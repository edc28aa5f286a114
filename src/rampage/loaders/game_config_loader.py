"""Game configuration: loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then injected into every system that needs a balance constant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class EfficiencyConfig:
    """Worker diminishing-returns curve.

    Attributes:
        decay: Worker at position ``i`` (1-based) contributes
            ``1 / (1 + (i - 1) * decay)``.
        milestones: Worker count → additive milestone bonus. All reached
            milestones are summed into ``1 + sum``.
    """
    decay: float = 0.12
    milestones: Dict[int, float] = field(default_factory=lambda: {
        5: 0.15, 10: 0.25, 20: 0.35,
    })


@dataclass
class CombatConfig:
    """Tap, burst and weak-point constants."""
    base_tap_damage: float = 5.0
    burst_chance: float = 0.0
    burst_multiplier: float = 6.0
    max_burst_chance: float = 0.75
    tap_variance_min: float = 0.9
    tap_variance_max: float = 1.1
    damage_scrap_percent: float = 0.5
    weak_point_base: float = 1.5
    weak_point_per_tier: float = 0.5
    weak_point_per_level: float = 0.02
    weak_point_per_worker: float = 0.01
    weak_point_max: float = 5.0
    critical_weakness_multiplier: float = 5.0


@dataclass
class StartingConfig:
    """Initial player state for a fresh game."""
    scrap: int = 100
    builders: int = 5
    max_builders: int = 250
    wave: int = 1


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so a session can start even without the file.
    """

    # -- Timing ------------------------------------------------------
    tick_interval_ms: float = 100.0
    max_offline_seconds: float = 8 * 3600.0
    offline_efficiency: float = 0.5
    autosave_interval_s: float = 30.0

    # -- Production --------------------------------------------------
    efficiency: EfficiencyConfig = field(default_factory=EfficiencyConfig)
    level_production_bonus: float = 0.5
    wave_bonus_factor: float = 0.5
    max_engineering_discount: float = 0.5
    max_salvage_bonus: float = 1.0
    shield_bonus_per_level: float = 0.5
    shield_max_bonus_seconds: float = 30.0

    # -- Combat ------------------------------------------------------
    combat: CombatConfig = field(default_factory=CombatConfig)

    # -- Waves -------------------------------------------------------
    base_wave_timer: float = 20.0
    wave_timer_per_wave: float = 0.2
    max_wave_timer: float = 60.0
    wave_timer_ceiling: float = 300.0
    boss_interval: int = 10
    boss_health_multiplier: float = 3.0
    boss_reward_multiplier: float = 5.0
    boss_timer_multiplier: float = 1.5
    reward_step_waves: int = 10
    reward_step_bonus: float = 0.5
    reward_step_cap: float = 10.0
    lucky_drop_chance: float = 0.2
    milestone_wave_interval: int = 10

    # -- Boosts ------------------------------------------------------
    max_boost_multiplier: float = 10.0

    # -- Prestige ----------------------------------------------------
    prestige_min_wave: int = 100
    base_blueprints: int = 100
    blueprints_per_wave: float = 10.0
    blueprint_wave_scaling: float = 1.1
    starting_scrap_per_wave_level: float = 50.0
    builder_cost_tiers: List[List[Optional[int]]] = field(default_factory=lambda: [
        [5, 30], [10, 50], [20, 75], [None, 100],
    ])

    # -- New game defaults -------------------------------------------
    starting: StartingConfig = field(default_factory=StartingConfig)

    # -- Network -----------------------------------------------------
    rest_host: str = "127.0.0.1"
    rest_port: int = 8080


_NESTED = {
    "efficiency": EfficiencyConfig,
    "combat": CombatConfig,
    "starting": StartingConfig,
}


def _build_section(cls: type, raw: object):
    if not isinstance(raw, dict):
        return cls()
    return cls(**{k: v for k, v in raw.items() if k in cls.__dataclass_fields__})


def game_config_from_dict(raw: dict) -> GameConfig:
    """Build a GameConfig from a parsed YAML mapping.

    Unknown keys are ignored and missing keys keep their defaults.
    """
    raw = dict(raw or {})
    nested = {key: _build_section(cls, raw.pop(key, None)) for key, cls in _NESTED.items()}
    milestones = nested["efficiency"].milestones
    nested["efficiency"].milestones = {int(k): float(v) for k, v in milestones.items()}
    return GameConfig(**nested, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))
    return game_config_from_dict(raw)
