"""Apply the packaged Alembic migrations.

``upgrade_to_head`` works on a connection the caller already holds, so async
code drives it with ``AsyncConnection.run_sync``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import Connection

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def build_alembic_config(db_url: str | None = None, stdout: TextIO = sys.stdout) -> Config:
    """Return an Alembic Config pointing at the packaged migration scripts.

    Args:
        db_url: SQLAlchemy URL. Only needed when Alembic opens its own connection.
        stdout: Stream Alembic writes status lines to.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option("sqlalchemy.url", db_url)
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    return cfg


def upgrade_to_head(connection: Connection) -> None:
    """Apply every revision on ``connection`` inside the caller's transaction."""
    cfg = build_alembic_config()
    cfg.attributes["connection"] = connection
    command.upgrade(cfg, "head")
