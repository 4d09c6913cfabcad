"""
SQL migration runner.

Migrations are plain ``*.sql`` files applied in filename order (001, 002, ...).
Applied filenames are recorded in the ``_migrations`` table in application
order. Each file runs as one script in its own transaction together with its
bookkeeping row, so a failing file leaves no trace and stops the whole
sequence.
"""

from pathlib import Path

import asyncpg
import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from core.config import settings
from core.errors import STORE_EXCEPTIONS, MigrationError

logger = structlog.get_logger(__name__)

MIGRATIONS_TABLE = "_migrations"

CREATE_MIGRATIONS_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
        id SERIAL PRIMARY KEY,
        name VARCHAR(255) NOT NULL UNIQUE,
        applied_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    )
"""

# Errors raised by the driver itself are not wrapped by SQLAlchemy
MIGRATION_EXCEPTIONS = (*STORE_EXCEPTIONS, asyncpg.PostgresError)


class MigrationRunner:
    """Applies pending SQL migrations from a directory."""

    def __init__(self, engine: AsyncEngine, migrations_dir: Path | None = None):
        self.engine = engine
        self.migrations_dir = Path(migrations_dir or settings.MIGRATIONS_DIR)

    def list_files(self) -> list[str]:
        """All migration filenames, sorted."""
        if not self.migrations_dir.is_dir():
            logger.warning("migrations_dir_missing", path=str(self.migrations_dir))
            return []
        return sorted(p.name for p in self.migrations_dir.glob("*.sql"))

    async def _ensure_table(self) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(text(CREATE_MIGRATIONS_TABLE))

    async def applied(self) -> list[str]:
        """Names of applied migrations in application order."""
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text(f"SELECT name FROM {MIGRATIONS_TABLE} ORDER BY id")
            )
            return [row[0] for row in result.fetchall()]

    async def pending(self) -> list[str]:
        applied = set(await self.applied())
        return [name for name in self.list_files() if name not in applied]

    async def _apply_script(self, conn: AsyncConnection, filename: str) -> None:
        sql = (self.migrations_dir / filename).read_text(encoding="utf-8")
        # Recorded first so the driver transaction is open before the script runs
        await conn.execute(
            text(f"INSERT INTO {MIGRATIONS_TABLE} (name) VALUES (:name)"),
            {"name": filename},
        )
        # The whole file goes through asyncpg's simple-query protocol, which
        # accepts multi-statement scripts and dollar-quoted bodies.
        raw = await conn.get_raw_connection()
        await raw.driver_connection.execute(sql)

    async def apply(self, filename: str) -> None:
        """Apply one migration inside a single transaction."""
        try:
            async with self.engine.begin() as conn:
                await self._apply_script(conn, filename)
        except MIGRATION_EXCEPTIONS as e:
            logger.error("migration_failed", migration=filename, error=str(e))
            raise MigrationError(filename, e) from e
        logger.info("migration_applied", migration=filename)

    async def run(self) -> list[str]:
        """
        Apply all pending migrations in order.

        Returns:
            The filenames applied by this run.

        Raises:
            MigrationError: on the first failing file; later files are not attempted.
        """
        await self._ensure_table()
        pending = await self.pending()
        if not pending:
            logger.info("migrations_up_to_date")
            return []

        logger.info("migrations_pending", count=len(pending))
        for filename in pending:
            await self.apply(filename)
        logger.info("migrations_complete", applied=len(pending))
        return pending


async def run_migrations(engine: AsyncEngine) -> list[str]:
    return await MigrationRunner(engine).run()
