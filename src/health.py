"""
Liveness endpoint for container orchestration.

GET /health answers 200 while the Discord gateway is connected and 503
("degraded") otherwise, so Docker/Kubernetes restart a bot that lost its
connection. GET / lists the endpoints.
"""
from typing import Any, Callable, Optional

from aiohttp import web
import structlog

logger = structlog.get_logger()

SERVICE_NAME = "voice-teamup"

ConnectivityProbe = Callable[[], bool]


class HealthCheckServer:
    """aiohttp app reporting whether the bot is connected to Discord."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        is_connected: Optional[ConnectivityProbe] = None,
    ):
        """
        Args:
            host: Bind address
            port: Bind port
            is_connected: Connectivity probe; until one is set the service reports degraded
        """
        self.host = host
        self.port = port
        self.is_connected = is_connected
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        self.app = web.Application()
        self.app.add_routes([
            web.get("/health", self.health_handler),
            web.get("/", self.root_handler),
        ])

    def set_connectivity_probe(self, is_connected: ConnectivityProbe) -> None:
        """Wire the probe once the bot exists."""
        self.is_connected = is_connected

    def snapshot(self) -> dict[str, Any]:
        """Current health payload."""
        connected = False
        if self.is_connected is not None:
            try:
                connected = bool(self.is_connected())
            except Exception as e:
                logger.warning("health_probe_failed", error=str(e))

        return {
            "status": "healthy" if connected else "degraded",
            "service": SERVICE_NAME,
            "discord_connected": connected,
        }

    async def health_handler(self, request: web.Request) -> web.Response:
        payload = self.snapshot()
        status = 200 if payload["discord_connected"] else 503
        return web.json_response(payload, status=status)

    async def root_handler(self, request: web.Request) -> web.Response:
        return web.json_response({"service": SERVICE_NAME, "endpoints": {"health": "/health"}})

    async def start(self) -> None:
        """Bind and start serving."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()

        self.runner, self.site = runner, site
        logger.info("health_server_started", host=self.host, port=self.port)

    async def stop(self) -> None:
        """Stop serving; safe to call when never started."""
        if self.site is not None:
            await self.site.stop()
            self.site = None
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
        logger.info("health_server_stopped")
