"""
Vote model for PostgreSQL storage.

A vote is immutable once inserted; the only write besides insert is the
bulk delete performed by an admin reset.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, SmallInteger, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

NAME_MAX_LENGTH = 128
CHOICES = (1, 2, 3, 4)


class Vote(Base):
    """A single participant's choice."""

    __tablename__ = "votes"

    # Assigned by the database at insert time
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH))

    choice: Mapped[int] = mapped_column(SmallInteger, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("choice BETWEEN 1 AND 4", name="ck_votes_choice"),
        Index("ix_votes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Vote {self.id} choice={self.choice}>"
