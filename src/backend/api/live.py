"""
Live channel WebSocket endpoint.

Messages in both directions use the envelope ``{"event": ..., "data": {...}}``.

CLIENT -> SERVER:
- identify: {role: "voter" | "presenter" | "admin", password?}
  Declares the connection's role, joins the room and triggers sync_state.
- submit_choice: {name, choice}
  Same as POST /api/choice.
- test_vote: {name?, choice?}  (admin only)
  Injects a synthetic vote through the normal ingestion path.
- set_presenter_mode: {mode, revealAnswers?}  (admin only)
  Forwarded as presenter_mode to presenter connections only.

SERVER -> CLIENT:
- sync_state: {counts, total, last50, brightness}
- new_item: {id, name, choice, color, created_at}
- updated_aggregate: {counts, total, brightness}
- presenter_mode: {mode, revealAnswers?}
- error: {message}
"""

import json
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.deps import (
    LiveServiceScope,
    get_live_channel,
    get_live_service_scope,
    get_role_gate,
)
from core.errors import LiveVoteError, ValidationError
from schemas.converters import state_to_sync
from schemas.state import PresenterModePayload
from services.live_channel import (
    ERROR,
    PRESENTER_MODE,
    SYNC_STATE,
    LiveChannel,
    LiveConnection,
)
from services.role_gate import Role, RoleGate

logger = structlog.get_logger(__name__)

router = APIRouter()


class LiveMessageHandler:
    """Dispatches client messages for one connection."""

    def __init__(
        self,
        connection: LiveConnection,
        channel: LiveChannel,
        gate: RoleGate,
        service_scope: LiveServiceScope,
    ):
        self.connection = connection
        self.channel = channel
        self.gate = gate
        self.service_scope = service_scope
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
            "identify": self.on_identify,
            "handshake": self.on_identify,
            "submit_choice": self.on_submit_choice,
            "test_vote": self.on_test_vote,
            "set_presenter_mode": self.on_set_presenter_mode,
        }

    async def dispatch(self, message: Any) -> None:
        """Handle one decoded message; client errors are answered with an error event."""
        try:
            if not isinstance(message, dict):
                raise ValidationError("Malformed message")
            event = message.get("event")
            data = message.get("data") or {}
            if not isinstance(data, dict):
                raise ValidationError("Malformed message")

            handler = self._handlers.get(event) if isinstance(event, str) else None
            if handler is None:
                raise ValidationError(f"Unknown event: {event!r}")
            await handler(data)
        except LiveVoteError as e:
            logger.info(
                "live_request_rejected",
                connection=self.connection.id,
                error_type=type(e).__name__,
                error=e.message,
            )
            await self.channel.send(self.connection, ERROR, {"message": e.client_message})

    async def on_identify(self, data: dict[str, Any]) -> None:
        session = self.connection.session
        role = self.gate.identify(session, data.get("role"), data.get("password"))
        # Subscribed before the snapshot so no vote falls between the two
        self.channel.subscribe(self.connection)

        try:
            async with self.service_scope() as service:
                state = await service.aggregator.compute_state()
        except LiveVoteError:
            # Without a snapshot the client must be able to identify again
            self.channel.unsubscribe(self.connection)
            session.role = None
            raise

        logger.info("live_identified", connection=self.connection.id, role=role.value)
        await self.channel.send(self.connection, SYNC_STATE, state_to_sync(state))

    async def on_submit_choice(self, data: dict[str, Any]) -> None:
        async with self.service_scope() as service:
            await service.submit_vote(data.get("name"), data.get("choice"))

    async def on_test_vote(self, data: dict[str, Any]) -> None:
        self.gate.require_admin(self.connection.session)
        async with self.service_scope() as service:
            await service.submit_test_vote(data.get("name"), data.get("choice"))

    async def on_set_presenter_mode(self, data: dict[str, Any]) -> None:
        self.gate.require_admin(self.connection.session)

        mode = data.get("mode")
        if not isinstance(mode, str) or not mode.strip():
            raise ValidationError("Mode is required")
        reveal = data.get("revealAnswers")
        if reveal is not None and not isinstance(reveal, bool):
            raise ValidationError("revealAnswers must be a boolean")

        logger.info(
            "presenter_mode_set",
            connection=self.connection.id,
            mode=mode,
            reveal_answers=bool(reveal),
        )
        await self.channel.publish(
            PRESENTER_MODE,
            PresenterModePayload(mode=mode, revealAnswers=reveal),
            role=Role.PRESENTER,
        )


@router.websocket("/live")
async def live(
    websocket: WebSocket,
    channel: Annotated[LiveChannel, Depends(get_live_channel)],
    gate: Annotated[RoleGate, Depends(get_role_gate)],
    service_scope: Annotated[LiveServiceScope, Depends(get_live_service_scope)],
) -> None:
    """The single live room shared by voters, presenters and admins."""
    await websocket.accept()
    connection = LiveConnection(websocket)
    handler = LiveMessageHandler(connection, channel, gate, service_scope)
    logger.info("live_connected", connection=connection.id)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            raw = frame.get("text")
            if raw is None:
                # Binary frames carry no envelope
                await channel.send(connection, ERROR, {"message": "Malformed message"})
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await channel.send(connection, ERROR, {"message": "Malformed message"})
                continue
            await handler.dispatch(message)
    except WebSocketDisconnect as e:
        logger.info("live_disconnected", connection=connection.id, code=e.code)
    finally:
        channel.unsubscribe(connection)
