"""
Vote ingestion service.

The single path every vote takes, whether it arrives over HTTP or over the
live channel:

1. Validate name and choice (nothing touches the store on failure)
2. Insert one row and commit
3. Recompute the aggregate and publish ``new_item`` then ``updated_aggregate``

Step 3 is best-effort. The vote is already committed, so a failed recompute
or publish is logged and the vote is still returned to the caller.
"""

import random
import time
from collections.abc import Sequence
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ValidationError, data_access
from models.vote import CHOICES, NAME_MAX_LENGTH, Vote
from repositories.settings_repository import SettingsRepository
from repositories.vote_repository import VoteRepository
from schemas.converters import state_to_aggregate, state_to_sync, vote_to_item
from schemas.vote import VoteItem
from services.aggregator import StateAggregator
from services.live_channel import (
    NEW_ITEM,
    SYNC_STATE,
    UPDATED_AGGREGATE,
    NullPublisher,
    Publisher,
)

logger = structlog.get_logger(__name__)

MIN_CHOICE = min(CHOICES)
MAX_CHOICE = max(CHOICES)


def validate_vote(name: Any, choice: Any) -> tuple[str, int]:
    """
    Check a raw name/choice pair and return the cleaned values.

    Raises:
        ValidationError: if the name is missing, blank or too long, or the
            choice is not an integer from 1 to 4.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    clean_name = name.strip()
    if len(clean_name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters")

    # bool is an int subclass; true/false are not choices
    if isinstance(choice, bool) or not isinstance(choice, int):
        raise ValidationError(f"Choice must be a number from {MIN_CHOICE} to {MAX_CHOICE}")
    if choice < MIN_CHOICE or choice > MAX_CHOICE:
        raise ValidationError(f"Choice must be a number from {MIN_CHOICE} to {MAX_CHOICE}")

    return clean_name, choice


class VoteService:
    """Persists votes and fans the resulting state out to subscribers."""

    def __init__(
        self,
        db: AsyncSession,
        publisher: Optional[Publisher] = None,
        votes: Optional[VoteRepository] = None,
        aggregator: Optional[StateAggregator] = None,
    ):
        self.db = db
        self.votes = votes or VoteRepository(db)
        self.aggregator = aggregator or StateAggregator(self.votes, SettingsRepository(db))
        self.publisher: Publisher = publisher or NullPublisher()

    async def submit_vote(self, name: Any, choice: Any, *, is_test: bool = False) -> VoteItem:
        """Validate, persist and broadcast one vote."""
        clean_name, clean_choice = validate_vote(name, choice)

        with data_access("Saving vote"):
            vote = await self.votes.create(clean_name, clean_choice)
            await self.db.commit()

        item = vote_to_item(vote)
        logger.info(
            "vote_recorded",
            vote_id=item.id,
            choice=item.choice,
            test_vote=is_test,
        )

        await self._broadcast_vote(item)
        return item

    async def submit_test_vote(self, name: Any = None, choice: Any = None) -> VoteItem:
        """Inject a synthetic vote; missing fields get a generated name / random choice."""
        if not name:
            name = f"Test-{int(time.time() * 1000)}"
        # 0, "" and missing all pick a random choice
        if not choice:
            choice = random.randint(MIN_CHOICE, MAX_CHOICE)
        return await self.submit_vote(name, choice, is_test=True)

    async def _broadcast_vote(self, item: VoteItem) -> None:
        try:
            await self.publisher.publish(NEW_ITEM, item)
        except Exception as e:
            logger.warning("vote_broadcast_failed", live_event=NEW_ITEM, vote_id=item.id, error=str(e))

        try:
            state = await self.aggregator.compute_aggregate()
            await self.publisher.publish(UPDATED_AGGREGATE, state_to_aggregate(state))
        except Exception as e:
            logger.warning(
                "vote_broadcast_failed", live_event=UPDATED_AGGREGATE, vote_id=item.id, error=str(e)
            )
            return
        logger.debug("aggregate_published", total=state.total)

    async def recent(self, limit: int = 50) -> Sequence[Vote]:
        with data_access("Listing votes"):
            return await self.votes.get_recent(limit)

    async def all_votes(self) -> Sequence[Vote]:
        with data_access("Exporting votes"):
            return await self.votes.get_all()

    async def reset(self) -> int:
        """
        Delete every vote.

        Subscribers then receive a fresh ``sync_state`` so displays drop the
        old results without reconnecting.
        """
        with data_access("Resetting votes"):
            deleted = await self.votes.delete_all()
            await self.db.commit()
        logger.info("votes_reset", deleted=deleted)

        try:
            state = await self.aggregator.compute_state()
            await self.publisher.publish(SYNC_STATE, state_to_sync(state))
        except Exception as e:
            logger.warning("reset_broadcast_failed", error=str(e))
        return deleted
