# Copyright (c) 2025 Stephen Clau
#
# This file is part of Voice Teamup.
#
# Voice Teamup is dual-licensed:
#
# 1. GNU Affero General Public License v3.0 (AGPL-3.0)
#    See LICENSE file for full terms
#
# 2. Commercial License
#    For proprietary use without AGPL requirements
#    Contact: licensing@laudiversified.com
#
# SPDX-License-Identifier: AGPL-3.0-only OR Commercial

"""
Tests for main.py: logging setup and the Application lifecycle.

NOTE: KeyboardInterrupt is NOT tested directly as it breaks pytest exit code.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog

from config import Config
from main import Application, main, setup_logging


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def config() -> Config:
    return Config(discord_bot_token="test_bot_token", guild_id=123, health_check_port=9099)


@pytest.fixture
def mock_bot() -> MagicMock:
    bot = MagicMock()
    bot.connect_bot = AsyncMock()
    bot.disconnect_bot = AsyncMock()
    bot.is_connected = True
    return bot


@pytest.fixture
def mock_health_cls():
    with patch("main.HealthCheckServer") as health_cls:
        server = health_cls.return_value
        server.start = AsyncMock()
        server.stop = AsyncMock()
        yield health_cls


# ============================================================================
# setup_logging
# ============================================================================

class TestSetupLogging:

    @pytest.mark.parametrize("fmt", ["json", "console"])
    def test_configures_structlog(self, fmt: str) -> None:
        setup_logging("debug", fmt)
        assert structlog.is_configured()

    def test_json_renderer(self) -> None:
        setup_logging("info", "json")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_unknown_level_falls_back(self) -> None:
        setup_logging("verbose", "console")
        assert structlog.is_configured()


# ============================================================================
# Application
# ============================================================================

class TestApplication:

    @pytest.mark.asyncio
    async def test_setup_loads_config_and_health(self, config, mock_health_cls) -> None:
        app = Application()
        with patch("main.load_config", return_value=config):
            await app.setup()

        assert app.config is config
        mock_health_cls.assert_called_once_with(host="0.0.0.0", port=9099)
        assert app.health_server is mock_health_cls.return_value

    @pytest.mark.asyncio
    async def test_setup_without_health(self, config, mock_health_cls) -> None:
        config.health_check_enabled = False
        app = Application()
        with patch("main.load_config", return_value=config):
            await app.setup()

        mock_health_cls.assert_not_called()
        assert app.health_server is None

    @pytest.mark.asyncio
    async def test_setup_propagates_config_errors(self) -> None:
        app = Application()
        with patch("main.load_config", side_effect=ValueError("DISCORD_BOT_TOKEN missing")):
            with pytest.raises(ValueError, match="DISCORD_BOT_TOKEN"):
                await app.setup()

    @pytest.mark.asyncio
    async def test_start_connects_bot_and_wires_health(self, config, mock_bot, mock_health_cls) -> None:
        app = Application()
        with patch("main.load_config", return_value=config):
            await app.setup()

        with patch("main.DiscordBotFactory.create_bot", return_value=mock_bot) as create_bot:
            await app.start()

        create_bot.assert_called_once_with(config)
        mock_bot.connect_bot.assert_awaited_once()
        server = mock_health_cls.return_value
        server.start.assert_awaited_once()
        probe = server.set_connectivity_probe.call_args.args[0]
        assert probe() is True

    @pytest.mark.asyncio
    async def test_stop_disconnects_everything(self, mock_bot) -> None:
        app = Application()
        app.bot = mock_bot
        app.health_server = MagicMock(stop=AsyncMock())

        await app.stop()

        mock_bot.disconnect_bot.assert_awaited_once()
        app.health_server.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_survives_disconnect_errors(self, mock_bot) -> None:
        mock_bot.disconnect_bot.side_effect = RuntimeError("socket gone")
        app = Application()
        app.bot = mock_bot
        app.health_server = MagicMock(stop=AsyncMock())

        await app.stop()

        app.health_server.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_stops_after_shutdown_event(self, config, mock_bot, mock_health_cls) -> None:
        app = Application()
        app.shutdown_event.set()

        with patch("main.load_config", return_value=config), \
                patch("main.DiscordBotFactory.create_bot", return_value=mock_bot):
            await app.run()

        mock_bot.connect_bot.assert_awaited_once()
        mock_bot.disconnect_bot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_stops_on_start_failure(self, config, mock_bot, mock_health_cls) -> None:
        mock_bot.connect_bot.side_effect = ConnectionError("Discord login failed")
        app = Application()

        with patch("main.load_config", return_value=config), \
                patch("main.DiscordBotFactory.create_bot", return_value=mock_bot):
            with pytest.raises(ConnectionError):
                await app.run()

        mock_health_cls.return_value.stop.assert_awaited_once()


class TestMain:

    @pytest.mark.asyncio
    async def test_fatal_error_exits_non_zero(self) -> None:
        with patch("main.Application") as app_cls, patch("main._install_signal_handlers", return_value=[]):
            app_cls.return_value.run = AsyncMock(side_effect=RuntimeError("boom"))
            with pytest.raises(SystemExit) as exc_info:
                await main()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_request_shutdown_sets_event(self) -> None:
        app = Application()
        app.request_shutdown("SIGTERM")
        assert app.shutdown_event.is_set()

    @pytest.mark.asyncio
    async def test_injected_config_loader(self, config, mock_health_cls) -> None:
        app = Application(config_loader=lambda: config)
        await app.setup()
        assert app.config is config

    @pytest.mark.asyncio
    async def test_start_requires_setup(self) -> None:
        with pytest.raises(RuntimeError, match="setup"):
            await Application().start()
