"""Schemas module initialization."""

from schemas.state import (
    BrightnessRange,
    PresenterModePayload,
    StateResponse,
    SyncStatePayload,
    UpdatedAggregatePayload,
)
from schemas.vote import (
    ChoiceRequest,
    ChoiceResponse,
    ResetResponse,
    SubmitCodeRequest,
    SubmitCodeResponse,
    VoteItem,
    VoteRecord,
)

__all__ = [
    "BrightnessRange",
    "ChoiceRequest",
    "ChoiceResponse",
    "PresenterModePayload",
    "ResetResponse",
    "StateResponse",
    "SubmitCodeRequest",
    "SubmitCodeResponse",
    "SyncStatePayload",
    "UpdatedAggregatePayload",
    "VoteItem",
    "VoteRecord",
]
