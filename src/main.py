"""
Voice Teamup - Main Entry Point

Discord bot that picks giveaway winners and splits voice channels into
random teams.

Startup order:
- load configuration (secrets, environment, optional bot.yml)
- configure structlog
- start the health check server
- connect the Discord bot (commands are synced to the configured guild)

Shutdown runs in reverse on SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Any, Callable, Optional

import structlog

from config import Config, load_config
from discord_bot import DiscordBot, DiscordBotFactory
from health import HealthCheckServer

logger = structlog.get_logger()

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _renderer(log_format: str) -> list[Any]:
    """Final processors for the chosen output format."""
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(log_level: str, log_format: str) -> None:
    """
    Configure structlog for the whole process.

    Args:
        log_level: debug, info, warning, error or critical (unknown -> info)
        log_format: "json" for log shippers, anything else for console output
    """
    min_level = LOG_LEVELS.get(log_level.lower(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger.info("logging_configured", level=log_level, format=log_format)


class Application:
    """Owns the config, the health server and the bot for one process run."""

    def __init__(self, config_loader: Optional[Callable[[], Config]] = None) -> None:
        self._config_loader = config_loader
        self.config: Optional[Config] = None
        self.health_server: Optional[HealthCheckServer] = None
        self.bot: Optional[DiscordBot] = None
        self.shutdown_event = asyncio.Event()

    async def setup(self) -> None:
        """Load configuration, configure logging, build the health server."""
        logger.info("application_starting")

        loader = self._config_loader or load_config
        try:
            config = loader()
        except Exception as e:
            logger.error("config_load_failed", error=str(e))
            raise

        self.config = config
        setup_logging(config.log_level, config.log_format)

        if config.health_check_enabled:
            self.health_server = HealthCheckServer(
                host=config.health_check_host,
                port=config.health_check_port,
            )

        logger.info(
            "application_configured",
            bot_name=config.bot_name,
            guild_id=config.guild_id,
            relocation_policy=config.commands.relocation_policy.value,
            health_enabled=config.health_check_enabled,
        )

    async def start(self) -> None:
        """Start serving health checks, then bring the bot online."""
        if self.config is None:
            raise RuntimeError("Application.setup() must run before start()")

        if self.health_server is not None:
            await self.health_server.start()

        bot = DiscordBotFactory.create_bot(self.config)
        self.bot = bot
        if self.health_server is not None:
            self.health_server.set_connectivity_probe(lambda: bot.is_connected)

        await bot.connect_bot()
        logger.info("application_running", guild_id=self.config.guild_id)

    async def stop(self) -> None:
        """Disconnect the bot, then stop the health server. Errors are logged, not raised."""
        logger.info("application_stopping")

        if self.bot is not None:
            try:
                await self.bot.disconnect_bot()
            except Exception as e:
                logger.error("discord_disconnect_failed", error=str(e))

        if self.health_server is not None:
            try:
                await self.health_server.stop()
            except Exception as e:
                logger.error("health_server_stop_failed", error=str(e))

        logger.info("application_stopped")

    def request_shutdown(self, signame: str = "manual") -> None:
        logger.info("shutdown_requested", signal=signame)
        self.shutdown_event.set()

    async def run(self) -> None:
        """Set up, start, wait for a shutdown request, always stop."""
        try:
            await self.setup()
            await self.start()
            await self.shutdown_event.wait()
        except Exception as e:
            logger.error("application_error", error=str(e), exc_info=True)
            raise
        finally:
            await self.stop()


def _install_signal_handlers(app: Application) -> list[signal.Signals]:
    """Route SIGINT/SIGTERM to a graceful shutdown. Returns what was installed."""
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, app.request_shutdown, sig.name)
        except (NotImplementedError, RuntimeError) as e:
            # Windows event loops and non-main threads
            logger.warning("signal_handler_unavailable", signal=sig.name, error=str(e))
            continue
        installed.append(sig)
    return installed


async def main() -> None:
    """Main async entry point."""
    app = Application()
    installed = _install_signal_handlers(app)

    try:
        await app.run()
    except Exception as e:
        logger.error("fatal_error", error=str(e))
        sys.exit(1)
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


def cli() -> None:
    """Console script entry point (``voice-teamup``)."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown complete.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
