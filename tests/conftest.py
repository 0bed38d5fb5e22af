from __future__ import annotations

import io
import os
import sys
from collections.abc import AsyncIterator

import pytest

from newsletter.config import Settings, get_settings
from newsletter.telemetry import init_logging
from newsletter.testing.harness import TestApp, spawn_app
from newsletter.testing.provision import ADMIN_ERRORS, check_server

# reason PostgreSQL was found unreachable, so later tests skip without retrying
_postgres_unreachable: dict[str, str] = {}


@pytest.fixture(scope="session", autouse=True)
def _logging() -> None:
    """Set up logging once per run; TEST_LOG=1 shows it on stdout."""
    stream = sys.stdout if os.environ.get("TEST_LOG") else io.StringIO()
    init_logging("INFO", stream=stream)


@pytest.fixture
async def postgres_settings() -> Settings:
    """Settings for a reachable PostgreSQL server; skips the test otherwise."""
    if "reason" in _postgres_unreachable:
        pytest.skip(_postgres_unreachable["reason"])

    settings = get_settings()
    try:
        await check_server(settings.database.without_db())
    except ADMIN_ERRORS as exc:
        _postgres_unreachable["reason"] = f"PostgreSQL not reachable: {exc}"
        pytest.skip(_postgres_unreachable["reason"])
    return settings


@pytest.fixture
async def test_app(postgres_settings: Settings) -> AsyncIterator[TestApp]:
    app = await spawn_app(postgres_settings)
    try:
        yield app
    finally:
        await app.aclose()
