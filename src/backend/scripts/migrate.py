"""
Apply pending SQL migrations.

Usage:
    python scripts/migrate.py

Exits with status 1 if the database is unreachable or any migration fails;
the failing migration is rolled back and later ones are not attempted.
"""

import sys

from _common import run_script

import structlog

from core.errors import STORE_EXCEPTIONS, MigrationError
from db.migrations import MigrationRunner
from db.session import get_engine

logger = structlog.get_logger("scripts.migrate")


async def migrate() -> int:
    logger.info("Starting migration runner...")
    try:
        applied = await MigrationRunner(get_engine()).run()
    except MigrationError as e:
        logger.error("Migration failed", migration=e.filename, error=e.message)
        return 1
    except STORE_EXCEPTIONS as e:
        logger.error("Database unreachable", error=str(e))
        return 1

    logger.info("Migration runner completed", applied=applied)
    return 0


if __name__ == "__main__":
    sys.exit(run_script(migrate))
