"""
Schemas for the derived application state and live channel payloads.
"""

from typing import Optional

from pydantic import BaseModel

from schemas.vote import VoteItem, VoteRecord


class BrightnessRange(BaseModel):
    min: float
    max: float


class StateResponse(BaseModel):
    """Body of GET /api/state."""

    totalCounts: dict[int, int]
    total: int
    last50: list[VoteRecord]
    target: int
    brightnessRange: BrightnessRange
    code: str


class SyncStatePayload(BaseModel):
    """Full snapshot pushed to a connection when it joins the live room."""

    counts: dict[int, int]
    total: int
    last50: list[VoteItem]
    brightness: float


class UpdatedAggregatePayload(BaseModel):
    """Counts and brightness after a vote."""

    counts: dict[int, int]
    total: int
    brightness: float


class PresenterModePayload(BaseModel):
    mode: str
    revealAnswers: Optional[bool] = None
