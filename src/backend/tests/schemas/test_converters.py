"""Tests for the schema converters."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from schemas.converters import (
    DEFAULT_COLOR,
    choice_color,
    state_to_response,
    state_to_sync,
    to_iso,
    vote_to_item,
    votes_to_csv,
)
from services.aggregator import AppState


def make_vote(name: str = "Anna", choice: int = 2, vote_id: str = "a1") -> SimpleNamespace:
    return SimpleNamespace(
        id=vote_id,
        name=name,
        choice=choice,
        created_at=datetime(2025, 3, 14, 18, 30, 5, 123456, tzinfo=timezone.utc),
    )


class TestToIso:
    def test_millisecond_precision_with_z(self) -> None:
        assert to_iso(make_vote().created_at) == "2025-03-14T18:30:05.123Z"

    def test_converts_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2025, 3, 14, 20, 0, 0, tzinfo=plus_two)

        assert to_iso(value) == "2025-03-14T18:00:00.000Z"

    def test_naive_values_are_utc(self) -> None:
        assert to_iso(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02T03:04:05.000Z"


class TestColors:
    @pytest.mark.parametrize(
        "choice,color",
        [(1, "#ff4136"), (2, "#ffdc00"), (3, "#fffef0"), (4, "#ff851b")],
    )
    def test_choice_colors(self, choice, color) -> None:
        assert choice_color(choice) == color

    def test_unknown_choice_gets_default(self) -> None:
        assert choice_color(9) == DEFAULT_COLOR

    def test_item_carries_color(self) -> None:
        item = vote_to_item(make_vote(choice=1))

        assert item.color == "#ff4136"
        assert item.created_at == "2025-03-14T18:30:05.123Z"


class TestStateConverters:
    def test_state_response_shape(self) -> None:
        state = AppState(
            counts={1: 1, 2: 0, 3: 0, 4: 0},
            total=1,
            brightness=0.11,
            target=110,
            brightness_min=0.1,
            brightness_max=1.1,
            code="8375",
            recent=(make_vote(choice=1),),
        )

        body = state_to_response(state).model_dump(mode="json")

        assert body["totalCounts"] == {"1": 1, "2": 0, "3": 0, "4": 0}
        assert body["brightnessRange"] == {"min": 0.1, "max": 1.1}
        assert body["code"] == "8375"
        assert body["last50"][0]["id"] == "a1"
        assert "color" not in body["last50"][0]

    def test_sync_items_have_colors(self) -> None:
        state = AppState(
            counts={1: 0, 2: 1, 3: 0, 4: 0},
            total=1,
            brightness=0.11,
            target=110,
            brightness_min=0.1,
            brightness_max=1.1,
            code="8375",
            recent=(make_vote(),),
        )

        payload = state_to_sync(state)

        assert payload.last50[0].color == "#ffdc00"
        assert payload.total == 1


class TestVotesToCsv:
    """CSV export format."""

    def test_header_only_when_empty(self) -> None:
        assert votes_to_csv([]) == "id,name,choice,created_at\n"

    def test_rows_are_quoted(self) -> None:
        csv = votes_to_csv([make_vote(), make_vote(name="Ben", choice=4, vote_id="b2")])

        assert csv == (
            "id,name,choice,created_at\n"
            '"a1","Anna",2,"2025-03-14T18:30:05.123Z"\n'
            '"b2","Ben",4,"2025-03-14T18:30:05.123Z"'
        )

    def test_embedded_quotes_are_doubled(self) -> None:
        csv = votes_to_csv([make_vote(name='Anna "the Voter", Jr')])

        assert '"Anna ""the Voter"", Jr"' in csv.splitlines()[1]
