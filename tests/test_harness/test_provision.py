from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from newsletter.config import DatabaseSettings
from newsletter.testing.provision import (
    DATABASE_NAME_PREFIX,
    CreateFailed,
    MigrationFailed,
    PoolFailed,
    ProvisionError,
    create_database,
    generate_database_name,
    provision,
    quote_identifier,
)

_SETTINGS = DatabaseSettings(host="db.internal", port=5433, username="admin", password="secret")


def _make_engine() -> MagicMock:
    engine = MagicMock()
    engine.dispose = AsyncMock()
    return engine


def test_generated_names_are_unique_and_prefixed() -> None:
    """Generated database names carry the test prefix and never repeat."""
    names = {generate_database_name() for _ in range(1000)}
    assert len(names) == 1000
    for name in names:
        assert name.startswith(DATABASE_NAME_PREFIX)
        # PostgreSQL truncates identifiers beyond 63 bytes
        assert len(name) <= 63


def test_quote_identifier_escapes_quotes() -> None:
    """Embedded double quotes are doubled inside the quoted identifier."""
    assert quote_identifier("plain") == '"plain"'
    assert quote_identifier('a"b') == '"a""b"'


async def test_create_database_issues_create_and_closes() -> None:
    """CREATE DATABASE is issued on an admin connection that is then closed."""
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.close = AsyncMock()
    with patch("newsletter.testing.provision.asyncpg.connect", new=AsyncMock(return_value=conn)) as connect:
        await create_database(_SETTINGS.without_db(), "newsletter_test_abc")

    connect.assert_awaited_once_with(**_SETTINGS.without_db().connect_kwargs())
    conn.execute.assert_awaited_once_with('CREATE DATABASE "newsletter_test_abc"')
    conn.close.assert_awaited_once()


async def test_create_database_closes_on_failure() -> None:
    """The admin connection is closed even when CREATE DATABASE fails."""
    conn = MagicMock()
    conn.execute = AsyncMock(side_effect=asyncpg.DuplicateDatabaseError("already exists"))
    conn.close = AsyncMock()
    with patch("newsletter.testing.provision.asyncpg.connect", new=AsyncMock(return_value=conn)):
        with pytest.raises(asyncpg.DuplicateDatabaseError):
            await create_database(_SETTINGS.without_db(), "newsletter_test_abc")

    conn.close.assert_awaited_once()


async def test_provision_runs_steps_in_order() -> None:
    """Create, open pool and migrate run in that order."""
    engine = _make_engine()
    steps = MagicMock()
    steps.create_database = AsyncMock()
    steps.open_pool = AsyncMock(return_value=engine)
    steps.migrate = AsyncMock()

    with patch("newsletter.testing.provision.create_database", new=steps.create_database), \
         patch("newsletter.testing.provision.open_pool", new=steps.open_pool), \
         patch("newsletter.testing.provision.migrate", new=steps.migrate):
        database = await provision(_SETTINGS)

    assert [c[0] for c in steps.mock_calls] == ["create_database", "open_pool", "migrate"]
    assert database.name.startswith(DATABASE_NAME_PREFIX)
    assert database.engine is engine
    assert database.admin == _SETTINGS.without_db()

    created_name = steps.create_database.await_args.args[1]
    assert created_name == database.name
    pool_settings = steps.open_pool.await_args.args[0]
    assert pool_settings.database_name == database.name
    assert pool_settings.host == "db.internal"
    steps.migrate.assert_awaited_once_with(engine)
    engine.dispose.assert_not_awaited()


async def test_create_failure_stops_the_sequence() -> None:
    """No pool is opened when the database could not be created."""
    open_pool = AsyncMock()
    create = AsyncMock(side_effect=asyncpg.DuplicateDatabaseError("already exists"))

    with patch("newsletter.testing.provision.create_database", new=create), \
         patch("newsletter.testing.provision.open_pool", new=open_pool):
        with pytest.raises(CreateFailed) as exc_info:
            await provision(_SETTINGS)

    assert exc_info.value.step == "create_database"
    assert exc_info.value.database_name is None
    open_pool.assert_not_awaited()


async def test_unreachable_server_is_create_failure() -> None:
    """A refused connection is reported as a create failure."""
    create = AsyncMock(side_effect=ConnectionRefusedError("connection refused"))

    with patch("newsletter.testing.provision.create_database", new=create):
        with pytest.raises(CreateFailed):
            await provision(_SETTINGS)


async def test_pool_failure_names_the_created_database() -> None:
    """A pool failure carries the name of the database that now exists."""
    migrate = AsyncMock()

    with patch("newsletter.testing.provision.create_database", new=AsyncMock()), \
         patch("newsletter.testing.provision.open_pool", new=AsyncMock(side_effect=OSError("refused"))), \
         patch("newsletter.testing.provision.migrate", new=migrate):
        with pytest.raises(PoolFailed) as exc_info:
            await provision(_SETTINGS)

    assert exc_info.value.database_name is not None
    assert exc_info.value.database_name.startswith(DATABASE_NAME_PREFIX)
    migrate.assert_not_awaited()


async def test_migration_failure_disposes_pool() -> None:
    """A migration failure disposes the pool and names the database."""
    engine = _make_engine()

    with patch("newsletter.testing.provision.create_database", new=AsyncMock()), \
         patch("newsletter.testing.provision.open_pool", new=AsyncMock(return_value=engine)), \
         patch("newsletter.testing.provision.migrate", new=AsyncMock(side_effect=RuntimeError("bad revision"))):
        with pytest.raises(MigrationFailed) as exc_info:
            await provision(_SETTINGS)

    assert exc_info.value.step == "migrate"
    assert exc_info.value.database_name is not None
    assert "bad revision" in str(exc_info.value)
    engine.dispose.assert_awaited_once()


def test_provision_errors_share_a_base_class() -> None:
    """Every provisioning failure is a ProvisionError."""
    for exc in (CreateFailed, PoolFailed, MigrationFailed):
        assert issubclass(exc, ProvisionError)
