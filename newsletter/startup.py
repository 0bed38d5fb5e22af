from __future__ import annotations

import logging
import socket

import uvicorn
from sqlalchemy.ext.asyncio import AsyncEngine

from newsletter.config import Settings
from newsletter.main import create_app

logger = logging.getLogger(__name__)


class Application:
    """The API plus the listening socket it serves on.

    The socket is bound when the Application is built, so ``port`` is known
    before serving starts, including when the configured port is 0.
    """

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None) -> None:
        self._settings = settings
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind((settings.application.host, settings.application.port))
        self._port = self._socket.getsockname()[1]

        try:
            self.app = create_app(settings, engine=engine)
            config = uvicorn.Config(
                app=self.app,
                log_level=settings.log_level.lower(),
                lifespan="on",
                # leave handlers to newsletter.telemetry
                log_config=None,
            )
            self._server = uvicorn.Server(config)
        except Exception:
            self._socket.close()
            raise

    @classmethod
    def build(cls, settings: Settings, engine: AsyncEngine | None = None) -> Application:
        return cls(settings, engine=engine)

    @property
    def host(self) -> str:
        return self._settings.application.host

    @property
    def port(self) -> int:
        return self._port

    @property
    def started(self) -> bool:
        return self._server.started

    async def run_until_stopped(self) -> None:
        logger.info("startup.serving", extra={"host": self.host, "port": self.port})
        try:
            await self._server.serve(sockets=[self._socket])
        finally:
            self._socket.close()

    def stop(self) -> None:
        """Ask the server to exit; ``run_until_stopped`` returns once it has."""
        self._server.should_exit = True
