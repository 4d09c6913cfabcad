"""Settings repository: key/value rows read by the state aggregator."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.setting import Setting


class SettingsRepository:
    """Repository for settings rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> dict[str, str]:
        """All settings as a plain mapping."""
        result = await self.db.execute(select(Setting.key, Setting.value))
        return {row[0]: row[1] for row in result.all()}

    async def get(self, key: str) -> Optional[str]:
        result = await self.db.execute(select(Setting.value).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def upsert(self, key: str, value: str) -> None:
        """Insert or overwrite a setting."""
        stmt = insert(Setting).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Setting.key],
            set_={"value": value, "updated_at": func.now()},
        )
        await self.db.execute(stmt)
