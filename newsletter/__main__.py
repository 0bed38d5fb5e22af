"""Run the newsletter API.

Usage:
    python -m newsletter

Settings come from the environment / .env (DATABASE__HOST, APPLICATION__PORT, ...).
"""

from __future__ import annotations

import asyncio

from newsletter.config import get_settings
from newsletter.startup import Application
from newsletter.telemetry import init_logging


def main() -> None:
    settings = get_settings()
    init_logging(settings.log_level)
    application = Application.build(settings)
    asyncio.run(application.run_until_stopped())


if __name__ == "__main__":
    main()
