"""
Vote-related Pydantic schemas.

Request bodies accept any JSON types; name and choice are validated by the
vote service so the HTTP endpoint and the live channel reject the same input
with the same messages.
"""

from typing import Any

from pydantic import BaseModel


class ChoiceRequest(BaseModel):
    """Body of POST /api/choice."""

    name: Any = None
    choice: Any = None


class SubmitCodeRequest(BaseModel):
    """Body of POST /api/submit."""

    name: Any = None
    code: Any = None


class SubmitCodeResponse(BaseModel):
    success: bool
    message: str


class VoteRecord(BaseModel):
    """A stored vote as listed by the state and admin endpoints."""

    id: str
    name: str
    choice: int
    created_at: str


class VoteItem(VoteRecord):
    """A vote with its display color (new_item events, choice responses)."""

    color: str


class ChoiceResponse(BaseModel):
    success: bool
    vote: VoteItem


class ResetResponse(BaseModel):
    success: bool
    message: str
    deletedCount: int
