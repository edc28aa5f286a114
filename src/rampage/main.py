"""Game core entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (game config, catalogs)
2. Restore a saved game, or start a fresh one
3. Create the game session and loop
4. Wire event handlers
5. Start the REST API (uvicorn)
6. Start the game loop (fixed-interval tick)

Usage:
    python -m rampage.main
    # or via entry point:
    rampage
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from dataclasses import dataclass, field
from typing import Any, Optional

from rampage.engine.catalog import Catalog
from rampage.engine.game_loop import GameLoop
from rampage.engine.game_session import GameSession
from rampage.loaders.catalog_loader import load_catalogs
from rampage.loaders.game_config_loader import GameConfig, load_game_config
from rampage.models.game_state import GameState
from rampage.persistence.state_load import load_state
from rampage.persistence.state_save import DEFAULT_STATE_PATH, save_state
from rampage.util.events import (
    BuildingUnlocked,
    EventBus,
    LuckyDrop,
    MilestoneReached,
    PrestigeTriggered,
    WaveExtended,
)

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "config"


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    game: GameConfig = field(default_factory=GameConfig)
    catalog: Catalog = field(default_factory=Catalog)


@dataclass
class Services:
    """Holds references to all runtime services."""

    game_config: Optional[GameConfig] = None
    event_bus: Optional[EventBus] = None
    session: Optional[GameSession] = None
    game_loop: Optional[GameLoop] = None
    state_file: str = DEFAULT_STATE_PATH
    rest_server: Any = None
    rest_task: Optional[asyncio.Task] = None


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_dir: str = DEFAULT_CONFIG_DIR) -> Configuration:
    """Load the game config and every catalog from ``config_dir``."""
    log.info("Loading configuration …")
    game_cfg = load_game_config(os.path.join(config_dir, "game.yaml"))
    log.info("  game_config:  loaded")
    catalog = Catalog(load_catalogs(config_dir))
    log.info("  catalog:      %d buildings, %d enemy tiers, %d synergies, %d prestige upgrades",
             len(catalog.buildings), len(catalog.enemy_tiers),
             len(catalog.synergies), len(catalog.prestige_upgrades))
    return Configuration(game=game_cfg, catalog=catalog)


# ===================================================================
# 2. Restore state
# ===================================================================


async def restore_game(config: Configuration, state_file: str) -> Optional[GameState]:
    restored = await load_state(state_file, config.catalog, config.game)
    if restored is None:
        log.info("  state:        no previous state found, fresh start")
        return None
    log.info("  state:        restored (wave %d, %d blueprints)",
             restored.state.current_wave, restored.state.player.blueprints)
    return restored.state


# ===================================================================
# 3. Create services
# ===================================================================


def create_services(config: Configuration, state: Optional[GameState] = None,
                    state_file: str = DEFAULT_STATE_PATH) -> Services:
    """Instantiate the session and loop with their dependencies."""
    log.info("Creating services …")
    gc = config.game
    event_bus = EventBus()
    session = GameSession(config.catalog, gc, state=state, event_bus=event_bus)
    services = Services(game_config=gc, event_bus=event_bus, session=session, state_file=state_file)

    async def _autosave() -> None:
        try:
            await save_state(session.state, state_file)
        except Exception:
            log.exception("Autosave failed, continuing")

    services.game_loop = GameLoop(session, gc, on_save=_autosave)
    log.info("  all services created")
    return services


# ===================================================================
# 4. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register handlers for the events worth a log line."""
    log.info("Wiring event handlers …")
    bus = services.event_bus

    bus.on(MilestoneReached, lambda evt: log.info("Milestone: wave %d reached", evt.wave))
    bus.on(BuildingUnlocked, lambda evt: log.info("Unlocked %s at wave %d", evt.building_id, evt.wave))
    bus.on(WaveExtended, lambda evt: log.info("Wave %d extended by %.1fs", evt.wave, evt.bonus_seconds))
    bus.on(LuckyDrop, lambda evt: log.debug("Lucky drop event: %s", evt.drop_id))
    bus.on(PrestigeTriggered, lambda evt: log.info(
        "Prestige #%d: +%d blueprints at wave %d",
        evt.prestige_count, evt.blueprints_earned, evt.wave_reached))

    log.info("  event handlers registered")


# ===================================================================
# 5. Start network server
# ===================================================================


async def start_network(services: Services) -> None:
    """Start the FastAPI REST app under uvicorn as a background task."""
    log.info("Starting network servers …")
    from rampage.network.rest_api import create_app
    import uvicorn

    rest_app = create_app(services)
    gc = services.game_config or GameConfig()
    config = uvicorn.Config(
        rest_app,
        host=gc.rest_host,
        port=gc.rest_port,
        log_level="info",
        access_log=False,
    )
    rest_server = uvicorn.Server(config)
    services.rest_server = rest_server
    services.rest_task = asyncio.create_task(rest_server.serve())
    log.info("  REST API listening on http://%s:%d", gc.rest_host, gc.rest_port)


# ===================================================================
# 6. Start game loop
# ===================================================================


async def start_game_loop(services: Services) -> None:
    """Run the game loop until a shutdown signal arrives."""
    log.info("Starting game loop …")
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        log.info("Shutdown signal received, stopping …")
        services.game_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    await services.game_loop.run()

    log.info("Shutting down …")
    await stop_network(services)
    log.info("  goodbye")


async def stop_network(services: Services) -> None:
    """Ask uvicorn to exit and wait for its serve task to finish."""
    if services.rest_server is None:
        return
    services.rest_server.should_exit = True
    if services.rest_task is not None:
        try:
            await services.rest_task
        except Exception:
            log.exception("REST API server failed")
            return
    log.info("  REST API server stopped")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_dir: str = DEFAULT_CONFIG_DIR, state_file: str = DEFAULT_STATE_PATH) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Rampage core starting ===")

    config = load_configuration(config_dir)
    state = await restore_game(config, state_file)
    services = create_services(config, state, state_file)
    wire_events(services)
    await start_network(services)
    await start_game_loop(services)


def main() -> None:
    """Entry point.

    Supports command-line arguments:
        --state_file <path>  Save file to restore and autosave to (default: state.yaml)
        --config_dir <path>  Directory holding the YAML config (default: config)
    """
    config_dir = DEFAULT_CONFIG_DIR
    state_file = DEFAULT_STATE_PATH

    for flag in ("--state_file", "--config_dir"):
        if flag not in sys.argv:
            continue
        idx = sys.argv.index(flag)
        if idx + 1 >= len(sys.argv):
            print(f"Error: {flag} requires an argument", file=sys.stderr)
            sys.exit(1)
        if flag == "--state_file":
            state_file = sys.argv[idx + 1]
        else:
            config_dir = sys.argv[idx + 1]

    asyncio.run(_start(config_dir=config_dir, state_file=state_file))


if __name__ == "__main__":
    main()
