"""
Tests for the /live WebSocket channel.

Uses Starlette's synchronous TestClient; all sockets opened from one client
share its event loop, so broadcasts between them are delivered in order.
"""

from unittest.mock import AsyncMock

import pytest
from starlette.testclient import TestClient

from core.errors import DataAccessError


@pytest.fixture
def live_client(app, monkeypatch):
    """TestClient with startup checks stubbed out."""
    monkeypatch.setattr("core.events.init_db", AsyncMock())
    monkeypatch.setattr("core.events.close_db", AsyncMock())
    with TestClient(app) as client:
        yield client


def send(ws, event, data=None) -> None:
    ws.send_json({"event": event, "data": data or {}})


def identify(ws, role, **extra) -> dict:
    """Identify and return the sync_state that follows."""
    send(ws, "identify", {"role": role, **extra})
    message = ws.receive_json()
    assert message["event"] == "sync_state"
    return message["data"]


@pytest.mark.unit
class TestIdentify:
    def test_sync_state_on_identify(self, live_client, vote_repo) -> None:
        vote_repo.add("Anna", 2)

        with live_client.websocket_connect("/live") as ws:
            state = identify(ws, "presenter")

        assert state["total"] == 1
        assert state["counts"] == {"1": 0, "2": 1, "3": 0, "4": 0}
        assert state["last50"][0]["name"] == "Anna"
        assert state["last50"][0]["color"] == "#ffdc00"
        assert state["brightness"] == pytest.approx(0.1 + 1 / 110)

    def test_handshake_and_client_aliases(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            send(ws, "handshake", {"role": "client"})

            assert ws.receive_json()["event"] == "sync_state"

    def test_second_identify_is_rejected(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "voter")
            send(ws, "identify", {"role": "admin"})

            assert ws.receive_json() == {"event": "error", "data": {"message": "Role already identified"}}

    def test_unknown_role(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            send(ws, "identify", {"role": "owner"})

            message = ws.receive_json()
            assert message["event"] == "error"
            # Still unidentified, so a valid identify works afterwards
            identify(ws, "voter")

    def test_failed_snapshot_allows_identify_retry(self, live_client, aggregator) -> None:
        """A store failure during identify leaves the connection unidentified."""
        real_compute_state = aggregator.compute_state
        failures = [DataAccessError("db down")]

        async def flaky_compute_state():
            if failures:
                raise failures.pop()
            return await real_compute_state()

        aggregator.compute_state = flaky_compute_state

        with live_client.websocket_connect("/live") as ws:
            send(ws, "identify", {"role": "presenter"})
            assert ws.receive_json() == {"event": "error", "data": {"message": "Internal server error"}}

            state = identify(ws, "presenter")

        assert state["total"] == 0

    def test_reconnect_gets_current_snapshot(self, live_client, vote_repo) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "voter")
            send(ws, "submit_choice", {"name": "Anna", "choice": 1})
            ws.receive_json()
            ws.receive_json()

        vote_repo.add("Ben", 4)

        with live_client.websocket_connect("/live") as ws:
            state = identify(ws, "presenter")

        assert state["total"] == len(vote_repo.votes) == 2
        assert [v["name"] for v in state["last50"]] == ["Ben", "Anna"]


@pytest.mark.unit
class TestSubmitChoice:
    def test_broadcast_reaches_every_subscriber(self, live_client, vote_repo) -> None:
        with live_client.websocket_connect("/live") as voter, live_client.websocket_connect(
            "/live"
        ) as presenter:
            identify(voter, "voter")
            identify(presenter, "presenter")

            send(voter, "submit_choice", {"name": "Anna", "choice": 2})

            for ws in (voter, presenter):
                new_item = ws.receive_json()
                aggregate = ws.receive_json()
                assert new_item["event"] == "new_item"
                assert new_item["data"]["name"] == "Anna"
                assert new_item["data"]["color"] == "#ffdc00"
                assert aggregate["event"] == "updated_aggregate"
                assert aggregate["data"]["total"] == 1
                assert aggregate["data"]["counts"]["2"] == 1

        assert len(vote_repo.votes) == 1

    def test_invalid_choice_is_error_event(self, live_client, vote_repo) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "voter")
            send(ws, "submit_choice", {"name": "Anna", "choice": 9})

            assert ws.receive_json() == {
                "event": "error",
                "data": {"message": "Choice must be a number from 1 to 4"},
            }

        assert vote_repo.votes == []


@pytest.mark.unit
class TestAdminEvents:
    def test_test_vote_requires_admin(self, live_client, vote_repo) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "voter")
            send(ws, "test_vote")

            assert ws.receive_json() == {"event": "error", "data": {"message": "Unauthorized"}}

        assert vote_repo.votes == []

    def test_admin_test_vote(self, live_client, vote_repo) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "admin")
            send(ws, "test_vote", {"choice": 3})

            new_item = ws.receive_json()
            assert new_item["event"] == "new_item"
            assert new_item["data"]["name"].startswith("Test-")
            assert new_item["data"]["choice"] == 3
            assert ws.receive_json()["event"] == "updated_aggregate"

        assert len(vote_repo.votes) == 1

    def test_presenter_mode_goes_only_to_presenters(self, live_client) -> None:
        with live_client.websocket_connect("/live") as admin, live_client.websocket_connect(
            "/live"
        ) as presenter, live_client.websocket_connect("/live") as voter:
            identify(admin, "admin")
            identify(presenter, "presenter")
            identify(voter, "voter")

            send(admin, "set_presenter_mode", {"mode": "results", "revealAnswers": True})

            assert presenter.receive_json() == {
                "event": "presenter_mode",
                "data": {"mode": "results", "revealAnswers": True},
            }

            # The next frame the others see is the vote, not the mode change
            send(admin, "submit_choice", {"name": "Anna", "choice": 1})
            for ws in (admin, voter, presenter):
                assert ws.receive_json()["event"] == "new_item"

    def test_presenter_mode_requires_admin(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "presenter")
            send(ws, "set_presenter_mode", {"mode": "results"})

            assert ws.receive_json()["event"] == "error"

    def test_presenter_mode_validates_payload(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            identify(ws, "admin")
            send(ws, "set_presenter_mode", {"mode": "results", "revealAnswers": "yes"})

            assert ws.receive_json() == {
                "event": "error",
                "data": {"message": "revealAnswers must be a boolean"},
            }


@pytest.mark.unit
class TestMalformedMessages:
    def test_invalid_json(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            ws.send_text("{nope")

            assert ws.receive_json() == {"event": "error", "data": {"message": "Malformed message"}}

    def test_binary_frame_is_error_event(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            ws.send_bytes(b"\x00\x01")

            assert ws.receive_json() == {"event": "error", "data": {"message": "Malformed message"}}
            # The connection stays usable
            identify(ws, "voter")

    def test_unknown_event(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            send(ws, "vote_twice")

            message = ws.receive_json()
            assert message["event"] == "error"
            assert "vote_twice" in message["data"]["message"]

    def test_non_object_message(self, live_client) -> None:
        with live_client.websocket_connect("/live") as ws:
            ws.send_json([1, 2, 3])

            assert ws.receive_json()["data"]["message"] == "Malformed message"
