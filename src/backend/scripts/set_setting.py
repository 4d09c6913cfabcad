"""
Set an event setting.

Usage:
    python scripts/set_setting.py code 4711
    python scripts/set_setting.py target_count 150

Known keys: target_count, brightness_min, brightness_max, code.
Connected displays pick up the change with their next state refresh.
"""

import argparse
import sys

from _common import run_script

import structlog

from db.session import async_session_maker
from repositories.settings_repository import SettingsRepository

logger = structlog.get_logger("scripts.set_setting")

KNOWN_KEYS = ("target_count", "brightness_min", "brightness_max", "code")


async def set_setting(key: str, value: str) -> int:
    if key not in KNOWN_KEYS:
        logger.warning("unknown_setting_key", key=key)

    async with async_session_maker() as db:
        await SettingsRepository(db).upsert(key, value)
        await db.commit()
    logger.info("setting_updated", key=key, value=value)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Set an event setting")
    parser.add_argument("key", help=f"one of: {', '.join(KNOWN_KEYS)}")
    parser.add_argument("value")
    args = parser.parse_args()

    return run_script(lambda: set_setting(args.key, args.value))


if __name__ == "__main__":
    sys.exit(main())
