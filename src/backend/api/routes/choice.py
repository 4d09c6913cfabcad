"""
Vote submission over HTTP.

Goes through the same VoteService as the live channel's submit_choice, so
both entry points validate, persist and broadcast identically.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.deps import get_vote_service
from schemas.vote import ChoiceRequest, ChoiceResponse
from services.vote_service import VoteService

router = APIRouter()


@router.post("", response_model=ChoiceResponse)
async def submit_choice(
    body: ChoiceRequest,
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> ChoiceResponse:
    """Record a vote and broadcast it to every live subscriber."""
    vote = await service.submit_vote(body.name, body.choice)
    return ChoiceResponse(success=True, vote=vote)
