"""Special-effect constants: cooldowns, chances and caps.

Values that are part of a building's identity rather than balance knobs
tuned per deployment; the knobs live in ``GameConfig``.
"""

# -- Scrap find (scrap_works) -------------------------------------------

SCRAP_FIND_BASE_COOLDOWN_MS: float = 30_000.0
SCRAP_FIND_COOLDOWN_PER_LEVEL_MS: float = 500.0
SCRAP_FIND_COOLDOWN_PER_WORKER_MS: float = 200.0
SCRAP_FIND_MIN_COOLDOWN_MS: float = 10_000.0
SCRAP_FIND_REWARD_PERCENT: float = 0.20
"""Share of the current wave reward paid per find."""

SCRAP_FIND_TIER_MULTIPLIERS: tuple[float, ...] = (1.0, 1.25, 1.5, 1.75, 2.0)

# -- Burst boost (training_facility) ------------------------------------

BURST_BOOST_BASE: float = 0.02
BURST_BOOST_PER_LEVEL: float = 0.005
BURST_BOOST_PER_WORKER: float = 0.002
BURST_BOOST_PER_TIER: float = 0.02
BURST_BOOST_MAX: float = 0.5
"""Cap for one building and for the sum across buildings."""

# -- Critical weakness (weak_point_scanner) -----------------------------

CRITICAL_WEAKNESS_BASE_CHANCE: float = 0.05
CRITICAL_WEAKNESS_PER_LEVEL: float = 0.01
CRITICAL_WEAKNESS_PER_WORKER: float = 0.005
CRITICAL_WEAKNESS_PER_TIER: float = 0.03
CRITICAL_WEAKNESS_MAX_CHANCE: float = 0.75

# -- Wave extend (shield_generator) -------------------------------------

WAVE_EXTEND_BASE_CHANCE: float = 0.10
WAVE_EXTEND_PER_LEVEL: float = 0.02
WAVE_EXTEND_PER_TIER: float = 0.05
WAVE_EXTEND_MAX_CHANCE: float = 0.9
WAVE_EXTEND_BONUS_PERCENT: float = 0.5
"""Share of the base wave timer added on a successful roll."""

WAVE_EXTEND_MAX_SECONDS: float = 30.0
