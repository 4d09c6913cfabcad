"""
Current event state.

Recomputed from the store on every call; with no writes in between,
repeated calls return identical bodies.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.deps import get_state_aggregator
from schemas.converters import state_to_response
from schemas.state import StateResponse
from services.aggregator import StateAggregator

router = APIRouter()


@router.get("", response_model=StateResponse)
async def get_state(
    aggregator: Annotated[StateAggregator, Depends(get_state_aggregator)],
) -> StateResponse:
    """Counts, total, last 50 votes, target, brightness range and access code."""
    state = await aggregator.compute_state()
    return state_to_response(state)
