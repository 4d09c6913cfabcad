"""
Shared setup for maintenance scripts.

Scripts are run directly (``python scripts/migrate.py``), so the backend root
is put on ``sys.path`` before anything from the application is imported.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parent.parent
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


def run_script(job: Callable[[], Awaitable[int]]) -> int:
    """Configure logging, run ``job`` and always dispose of the connection pool."""
    from core.logging import configure_logging
    from db.session import close_db

    configure_logging()

    async def runner() -> int:
        try:
            return await job()
        finally:
            await close_db()

    return asyncio.run(runner())
