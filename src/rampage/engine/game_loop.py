"""Main game loop: asyncio-based fixed-interval tick.

Responsibilities:
- Drive ``GameSession.tick`` every ``tick_interval_ms``
- Pause / resume; resuming credits an offline batch for the paused span
  instead of replaying the missed ticks
- Periodic autosave through a callback

The loop never mutates game state itself; everything goes through the
session.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from rampage.engine.game_session import GameSession
    from rampage.loaders.game_config_loader import GameConfig

log = logging.getLogger(__name__)

SaveCallback = Callable[[], Awaitable[None]]


class GameLoop:
    """The central tick loop.

    Args:
        session: Game session to advance.
        game_config: Tick interval and autosave interval.
        on_save: Optional coroutine called every ``autosave_interval_s``
            and once when the loop stops.
    """

    def __init__(
        self,
        session: GameSession,
        game_config: GameConfig | None = None,
        on_save: Optional[SaveCallback] = None,
    ) -> None:
        from rampage.loaders.game_config_loader import GameConfig

        cfg = game_config or GameConfig()
        self._session = session
        self._on_save = on_save
        self._interval_s = cfg.tick_interval_ms / 1000.0
        self._autosave_interval = cfg.autosave_interval_s
        self._running = False
        self._paused = False
        self._paused_at: float = 0.0
        self._since_save: float = 0.0

        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.simulated_ms: float = 0.0  # paused spans excluded

    async def run(self) -> None:
        """Tick the session until stop() is called, then save once."""
        self._running = True
        self.started_at = time.monotonic()
        previous = self.started_at
        log.info("Game loop started (interval=%.0f ms)", self._interval_s * 1000)
        try:
            while self._running:
                current = time.monotonic()
                elapsed_s, previous = current - previous, current
                if not self._paused:
                    self._step(elapsed_s)
                    await self._maybe_autosave(elapsed_s)
                await asyncio.sleep(self._interval_s)
        finally:
            if self._on_save is not None:
                await self._on_save()
            log.info("Game loop stopped after %d ticks (%.1fs simulated)",
                     self.tick_count, self.simulated_ms / 1000.0)

    @property
    def uptime_seconds(self) -> float:
        if not self.started_at:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    def stop(self) -> None:
        """Signal the game loop to stop."""
        self._running = False

    def pause(self) -> None:
        """Stop ticking; fractional production progress is kept."""
        if self._paused:
            return
        self._paused = True
        self._paused_at = time.monotonic()
        log.info("Game loop paused")

    def resume(self, elapsed_seconds: float | None = None) -> None:
        """Resume ticking and credit offline production for the pause.

        ``elapsed_seconds`` overrides the measured pause length (e.g. when
        the process itself was suspended).
        """
        if not self._paused:
            return
        if elapsed_seconds is None:
            elapsed_seconds = time.monotonic() - self._paused_at
        self._paused = False
        self._session.apply_offline_progress(elapsed_seconds)
        log.info("Game loop resumed after %.1fs", elapsed_seconds)

    def _step(self, elapsed_s: float) -> None:
        delta_ms = elapsed_s * 1000.0
        self._session.tick(delta_ms)
        self.tick_count += 1
        self.simulated_ms += delta_ms

    async def _maybe_autosave(self, elapsed_s: float) -> None:
        if self._on_save is None or self._autosave_interval <= 0:
            return
        self._since_save += elapsed_s
        if self._since_save >= self._autosave_interval:
            self._since_save = 0.0
            await self._on_save()
