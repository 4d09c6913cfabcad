"""
Vote repository for database operations.

Plain parameterized statements; the store assigns ids and timestamps.
"""

from collections.abc import Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.vote import CHOICES, Vote


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, name: str, choice: int) -> Vote:
        """Insert a vote and return the row as stored (with id and created_at)."""
        result = await self.db.execute(
            insert(Vote).values(name=name, choice=choice).returning(Vote)
        )
        return result.scalar_one()

    async def count(self) -> int:
        """Total number of votes."""
        result = await self.db.execute(select(func.count(Vote.id)))
        return result.scalar() or 0

    async def count_by_choice(self) -> dict[int, int]:
        """
        Vote counts grouped by choice.

        Every choice is present in the result; choices without votes map to 0.
        """
        result = await self.db.execute(
            select(Vote.choice, func.count(Vote.id).label("count")).group_by(Vote.choice)
        )
        counts = {choice: 0 for choice in CHOICES}
        for row in result.all():
            counts[int(row[0])] = int(row[1])
        return counts

    async def get_recent(self, limit: int = 50) -> Sequence[Vote]:
        """Most recent votes, newest first."""
        result = await self.db.execute(
            select(Vote).order_by(Vote.created_at.desc(), Vote.id.desc()).limit(limit)
        )
        return result.scalars().all()

    async def get_all(self) -> Sequence[Vote]:
        """All votes, newest first (used by the CSV export)."""
        result = await self.db.execute(
            select(Vote).order_by(Vote.created_at.desc(), Vote.id.desc())
        )
        return result.scalars().all()

    async def delete_all(self) -> int:
        """Delete every vote and return how many rows were removed."""
        result = await self.db.execute(delete(Vote))
        return result.rowcount or 0
