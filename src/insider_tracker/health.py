"""HTTP health endpoint."""

import logging
from typing import Callable

from aiohttp import web

logger = logging.getLogger(__name__)


class HealthServer:
    """Serves GET /health with a status snapshot from the tracker."""

    def __init__(self, status: Callable[[], dict], host: str = "0.0.0.0", port: int = 3000):
        self._status = status
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

        self.app = web.Application()
        self.app.router.add_get("/health", self.handle_health)

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response(self._status())

    async def start(self):
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"Health server running on {self.host}:{self.port}")

    async def stop(self):
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
