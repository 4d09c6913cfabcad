"""
Admin endpoints for event management.

All routes require the shared HTTP Basic admin credential:
- Latest votes
- CSV export of every vote
- Reset (delete all votes)
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from api.deps import get_vote_service, require_admin
from schemas.converters import vote_to_record, votes_to_csv
from schemas.vote import ResetResponse, VoteRecord
from services.vote_service import VoteService

router = APIRouter(dependencies=[Depends(require_admin)])

LAST_VOTES_LIMIT = 50


@router.get("/last50", response_model=list[VoteRecord])
async def get_last_votes(
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> list[VoteRecord]:
    """The 50 most recent votes, newest first."""
    votes = await service.recent(LAST_VOTES_LIMIT)
    return [vote_to_record(v) for v in votes]


@router.get("/export")
async def export_votes(
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> Response:
    """Download every vote as CSV."""
    votes = await service.all_votes()
    filename = f"votes-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=votes_to_csv(votes),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/reset", response_model=ResetResponse)
async def reset_votes(
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> ResetResponse:
    """Delete all votes."""
    deleted = await service.reset()
    return ResetResponse(
        success=True,
        message=f"Deleted {deleted} records",
        deletedCount=deleted,
    )
