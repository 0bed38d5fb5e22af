"""drop_test_databases.py — Remove ephemeral test databases left behind.

Teardown normally drops every test database; a killed test process is the
one way to leak them. Run this to sweep up:
    python scripts/drop_test_databases.py            # list only
    python scripts/drop_test_databases.py --drop     # drop them

Only databases named with the test prefix (newsletter_test_*) are touched.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running from project root without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncpg

from newsletter.config import settings
from newsletter.testing.provision import DATABASE_NAME_PREFIX
from newsletter.testing.teardown import TeardownCoordinator, strategy_for

_FIND_TEST_DATABASES = """
SELECT datname FROM pg_database
WHERE datname LIKE $1
ORDER BY datname
"""


async def find_test_databases() -> list[str]:
    admin = settings.database.without_db()
    conn = await asyncpg.connect(**admin.connect_kwargs())
    try:
        rows = await conn.fetch(_FIND_TEST_DATABASES, DATABASE_NAME_PREFIX.replace("_", r"\_") + "%")
    finally:
        await conn.close()
    return [row["datname"] for row in rows]


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--drop", action="store_true", help="drop the databases instead of listing them")
    args = parser.parse_args()

    names = asyncio.run(find_test_databases())
    if not names:
        print("No leftover test databases.")
        return 0

    failed = 0
    strategy = strategy_for(settings.database.teardown_strategy)
    for name in names:
        if not args.drop:
            print(f"  {name}")
            continue
        result = TeardownCoordinator(name, settings.database.without_db(), strategy=strategy).close()
        if result.dropped:
            print(f"✓ Dropped {name} ({result.terminated_sessions} sessions terminated)")
        else:
            failed += 1
            print(f"✗ {result.error}")

    if not args.drop:
        print(f"{len(names)} leftover test database(s); rerun with --drop to remove them.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
