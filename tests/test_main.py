"""Tests for startup wiring in rampage.main."""

import asyncio
import logging
from pathlib import Path
from unittest.mock import MagicMock

from rampage.main import (
    Services,
    create_services,
    load_configuration,
    restore_game,
    stop_network,
    wire_events,
)
from rampage.persistence.state_save import save_state
from rampage.util.events import MilestoneReached

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class TestStartup:
    def test_load_configuration(self):
        config = load_configuration(str(CONFIG_DIR))
        assert len(config.catalog.buildings) == 8
        assert config.game.prestige_min_wave == 100

    async def test_restore_missing_state(self, tmp_path):
        config = load_configuration(str(CONFIG_DIR))
        assert await restore_game(config, str(tmp_path / "state.yaml")) is None

    async def test_restore_saved_state(self, tmp_path):
        config = load_configuration(str(CONFIG_DIR))
        services = create_services(config, state_file=str(tmp_path / "state.yaml"))
        services.session.state.current_wave = 7
        await save_state(services.session.state, services.state_file)
        state = await restore_game(config, services.state_file)
        assert state.current_wave == 7

    def test_create_services(self, tmp_path):
        config = load_configuration(str(CONFIG_DIR))
        services = create_services(config, state_file=str(tmp_path / "state.yaml"))
        assert services.session.state.current_wave == 1
        assert services.game_loop is not None
        assert services.session.events is services.event_bus

    async def test_autosave_writes_state_file(self, tmp_path):
        config = load_configuration(str(CONFIG_DIR))
        path = tmp_path / "state.yaml"
        services = create_services(config, state_file=str(path))
        await services.game_loop._on_save()
        assert path.exists()

    def test_wire_events_logs_milestones(self, caplog):
        config = load_configuration(str(CONFIG_DIR))
        services = create_services(config)
        wire_events(services)
        with caplog.at_level(logging.INFO, logger="rampage.main"):
            services.event_bus.emit(MilestoneReached(wave=20))
        assert "Milestone: wave 20 reached" in caplog.text


class TestShutdown:
    async def test_stop_network_waits_for_server(self, caplog):
        async def serve():
            await asyncio.sleep(0)

        services = Services(rest_server=MagicMock())
        services.rest_task = asyncio.create_task(serve())
        with caplog.at_level(logging.INFO, logger="rampage.main"):
            await stop_network(services)
        assert services.rest_server.should_exit is True
        assert services.rest_task.done()
        assert "REST API server stopped" in caplog.text

    async def test_stop_network_reports_server_failure(self, caplog):
        async def serve():
            raise RuntimeError("address already in use")

        services = Services(rest_server=MagicMock())
        services.rest_task = asyncio.create_task(serve())
        await asyncio.sleep(0)
        with caplog.at_level(logging.INFO, logger="rampage.main"):
            await stop_network(services)
        assert "REST API server failed" in caplog.text
        assert "address already in use" in caplog.text
        assert "REST API server stopped" not in caplog.text

    async def test_stop_network_without_server(self):
        await stop_network(Services())
