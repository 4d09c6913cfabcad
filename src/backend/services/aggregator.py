"""
State aggregation service.

Derives the live view of the event (counts per choice, total, recent votes,
brightness) from the vote and settings tables. Nothing is cached: every call
recomputes from the store, so the derived state can never drift from it.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

import structlog

from core.errors import data_access
from models.vote import Vote
from repositories.settings_repository import SettingsRepository
from repositories.vote_repository import VoteRepository

logger = structlog.get_logger(__name__)

RECENT_LIMIT = 50

DEFAULT_TARGET = 110
DEFAULT_BRIGHTNESS_MIN = 0.1
DEFAULT_BRIGHTNESS_MAX = 1.10
DEFAULT_CODE = "8375"


def calculate_brightness(total: int, target: int, minimum: float, maximum: float) -> float:
    """
    Interpolate brightness between the configured bounds by progress to target.

    The result is clamped to ``[minimum, maximum]``. A non-positive target is
    treated as already reached once any vote exists.
    """
    if target <= 0:
        return maximum if total > 0 else minimum
    brightness = minimum + (total / target) * (maximum - minimum)
    return min(max(brightness, minimum), maximum)


def _parse(raw: Optional[str], cast, default):
    if raw is None:
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        logger.warning("setting_unparsable", value=raw, fallback=default)
        return default
    # float() accepts "inf" and "nan"
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning("setting_unparsable", value=raw, fallback=default)
        return default
    return value


@dataclass(frozen=True)
class EventSettings:
    """Typed view of the settings table with fallback defaults applied."""

    target: int = DEFAULT_TARGET
    brightness_min: float = DEFAULT_BRIGHTNESS_MIN
    brightness_max: float = DEFAULT_BRIGHTNESS_MAX
    code: str = DEFAULT_CODE

    @classmethod
    def from_mapping(cls, raw: Mapping[str, str]) -> "EventSettings":
        minimum = _parse(raw.get("brightness_min"), float, DEFAULT_BRIGHTNESS_MIN)
        maximum = _parse(raw.get("brightness_max"), float, DEFAULT_BRIGHTNESS_MAX)
        if minimum > maximum:
            minimum, maximum = maximum, minimum
        return cls(
            target=_parse(raw.get("target_count"), int, DEFAULT_TARGET),
            brightness_min=minimum,
            brightness_max=maximum,
            code=raw.get("code") or DEFAULT_CODE,
        )


@dataclass(frozen=True)
class AppState:
    """Derived, never-persisted view of the event."""

    counts: dict[int, int]
    total: int
    brightness: float
    target: int
    brightness_min: float
    brightness_max: float
    code: str
    recent: Sequence[Vote] = field(default_factory=tuple)


class StateAggregator:
    """Computes AppState from the store on demand."""

    def __init__(self, votes: VoteRepository, settings: SettingsRepository):
        self.votes = votes
        self.settings = settings

    async def get_settings(self) -> EventSettings:
        with data_access("Reading settings"):
            raw = await self.settings.get_all()
        return EventSettings.from_mapping(raw)

    async def compute_aggregate(self) -> AppState:
        """Counts, total and brightness without the recent-votes list."""
        return await self._compute(include_recent=False)

    async def compute_state(self) -> AppState:
        """Full snapshot including the 50 most recent votes."""
        return await self._compute(include_recent=True)

    async def _compute(self, include_recent: bool) -> AppState:
        # Queries run sequentially: an AsyncSession does not allow concurrent use.
        with data_access("Computing state"):
            counts = await self.votes.count_by_choice()
            recent = await self.votes.get_recent(RECENT_LIMIT) if include_recent else ()
        event_settings = await self.get_settings()

        # Total is derived from the grouped counts so both always agree
        total = sum(counts.values())
        return AppState(
            counts=counts,
            total=total,
            brightness=calculate_brightness(
                total,
                event_settings.target,
                event_settings.brightness_min,
                event_settings.brightness_max,
            ),
            target=event_settings.target,
            brightness_min=event_settings.brightness_min,
            brightness_max=event_settings.brightness_max,
            code=event_settings.code,
            recent=tuple(recent),
        )
