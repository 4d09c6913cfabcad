"""
Schema converter functions.

Centralized helpers for turning stored votes and computed state into the
payloads sent over HTTP and the live channel.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

from schemas.state import StateResponse, SyncStatePayload, UpdatedAggregatePayload
from schemas.vote import VoteItem, VoteRecord

if TYPE_CHECKING:
    from models.vote import Vote
    from services.aggregator import AppState

CHOICE_COLORS: dict[int, str] = {
    1: "#ff4136",  # red
    2: "#ffdc00",  # yellow
    3: "#fffef0",  # white
    4: "#ff851b",  # orange
}
DEFAULT_COLOR = "#ff851b"


def choice_color(choice: int) -> str:
    return CHOICE_COLORS.get(choice, DEFAULT_COLOR)


def to_iso(value: datetime) -> str:
    """
    Format a timestamp as UTC with millisecond precision and a Z suffix.

    Matches JavaScript's Date.toISOString(), which display clients parse.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def vote_to_record(vote: "Vote") -> VoteRecord:
    return VoteRecord(
        id=str(vote.id),
        name=vote.name,
        choice=vote.choice,
        created_at=to_iso(vote.created_at),
    )


def vote_to_item(vote: "Vote") -> VoteItem:
    return VoteItem(
        id=str(vote.id),
        name=vote.name,
        choice=vote.choice,
        color=choice_color(vote.choice),
        created_at=to_iso(vote.created_at),
    )


def state_to_response(state: "AppState") -> StateResponse:
    """Convert computed state to the GET /api/state body."""
    return StateResponse(
        totalCounts=state.counts,
        total=state.total,
        last50=[vote_to_record(v) for v in state.recent],
        target=state.target,
        brightnessRange={"min": state.brightness_min, "max": state.brightness_max},
        code=state.code,
    )


def state_to_sync(state: "AppState") -> SyncStatePayload:
    return SyncStatePayload(
        counts=state.counts,
        total=state.total,
        last50=[vote_to_item(v) for v in state.recent],
        brightness=state.brightness,
    )


def state_to_aggregate(state: "AppState") -> UpdatedAggregatePayload:
    return UpdatedAggregatePayload(
        counts=state.counts,
        total=state.total,
        brightness=state.brightness,
    )


def votes_to_csv(votes: Iterable["Vote"]) -> str:
    """
    Render votes as CSV.

    String values are quoted with embedded double quotes doubled; choice is
    a bare integer. Rows are joined by newlines with no trailing newline.
    """

    def quote(value: str) -> str:
        return '"' + value.replace('"', '""') + '"'

    rows = [
        f"{quote(str(v.id))},{quote(v.name)},{v.choice},{quote(to_iso(v.created_at))}"
        for v in votes
    ]
    return "id,name,choice,created_at\n" + "\n".join(rows)
