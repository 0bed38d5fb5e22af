from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from newsletter.api import health, subscriptions
from newsletter.config import Settings, get_settings
from newsletter.db.session import get_connection_pool, session_factory

logger = logging.getLogger(__name__)


async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    # a malformed or incomplete payload is a client error, reported as 400 rather than 422
    logger.info("request.invalid_payload", extra={"path": request.url.path})
    return JSONResponse(status_code=400, content={"detail": "Invalid request payload"})


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """Build the API bound to ``engine`` (or a pool built from ``settings``).

    An engine passed in is shared with the caller and is not disposed on shutdown.
    """
    settings = settings or get_settings()
    owns_engine = engine is None
    pool = engine if engine is not None else get_connection_pool(settings.database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # type: ignore[type-arg]
        logger.info("Starting newsletter API", extra={"env": settings.app_env})
        yield
        if owns_engine:
            await pool.dispose()
        logger.info("Shutting down newsletter API")

    app = FastAPI(
        title="Newsletter API",
        version="1.0.0",
        description="Newsletter subscription intake",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = pool
    app.state.sessionmaker = session_factory(pool)

    app.add_exception_handler(RequestValidationError, _bad_request)  # type: ignore[arg-type]
    app.include_router(health.router)
    app.include_router(subscriptions.router)
    return app


app = create_app()
