"""
Live broadcast channel.

A single in-process room that every display and voting client joins over a
WebSocket. The server is the only publisher. Delivery is best-effort: a
connection that fails to receive a message is dropped and the failure is
logged, never raised to the publisher. There is no replay log; a client that
reconnects is brought up to date with a full ``sync_state`` snapshot.

Wire format is one JSON text frame per message::

    {"event": "<name>", "data": {...}}
"""

import asyncio
from typing import Any, Optional, Protocol
from uuid import uuid4

import structlog
from pydantic import BaseModel

from services.role_gate import LiveSession, Role

logger = structlog.get_logger(__name__)

ROOM = "live"

# Server -> client events
SYNC_STATE = "sync_state"
NEW_ITEM = "new_item"
UPDATED_AGGREGATE = "updated_aggregate"
PRESENTER_MODE = "presenter_mode"
ERROR = "error"


class Publisher(Protocol):
    """Anything the vote service can publish events through."""

    async def publish(self, event: str, data: Any, role: Optional[Role] = None) -> None: ...


class NullPublisher:
    """Publisher that drops everything (scripts, tests)."""

    async def publish(self, event: str, data: Any, role: Optional[Role] = None) -> None:
        return None


def encode(event: str, data: Any) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", exclude_none=True)
    return {"event": event, "data": data}


class LiveConnection:
    """One client connection and its identification state."""

    def __init__(self, websocket: Any, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.id = connection_id or uuid4().hex
        self.session = LiveSession()

    @property
    def role(self) -> Optional[Role]:
        return self.session.role

    async def send(self, event: str, data: Any) -> None:
        await self.websocket.send_json(encode(event, data))

    def __repr__(self) -> str:
        return f"<LiveConnection {self.id} role={self.role}>"


class LiveChannel:
    """The set of connections subscribed to the room."""

    def __init__(self, name: str = ROOM):
        self.name = name
        self._connections: dict[str, LiveConnection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: LiveConnection) -> bool:
        return connection.id in self._connections

    def subscribe(self, connection: LiveConnection) -> None:
        self._connections[connection.id] = connection
        logger.info(
            "live_subscribed",
            room=self.name,
            connection=connection.id,
            role=connection.role.value if connection.role else None,
            subscribers=len(self._connections),
        )

    def unsubscribe(self, connection: LiveConnection) -> None:
        if self._connections.pop(connection.id, None) is not None:
            logger.info(
                "live_unsubscribed",
                room=self.name,
                connection=connection.id,
                subscribers=len(self._connections),
            )

    def subscribers(self, role: Optional[Role] = None) -> list[LiveConnection]:
        connections = list(self._connections.values())
        if role is None:
            return connections
        return [c for c in connections if c.role is role]

    async def send(self, connection: LiveConnection, event: str, data: Any) -> bool:
        """
        Send one message to one connection.

        Returns False (and drops the connection) when the send fails.
        """
        try:
            await connection.send(event, data)
            return True
        except Exception as e:
            logger.warning(
                "live_send_failed",
                room=self.name,
                connection=connection.id,
                live_event=event,
                error=str(e),
            )
            self.unsubscribe(connection)
            return False

    async def publish(self, event: str, data: Any, role: Optional[Role] = None) -> None:
        """Send an event to every subscriber, or only to those holding ``role``."""
        targets = self.subscribers(role)
        if not targets:
            return
        message = encode(event, data)
        await asyncio.gather(*(self.send(c, event, message["data"]) for c in targets))
        logger.debug(
            "live_published",
            room=self.name,
            live_event=event,
            recipients=len(targets),
            role=role.value if role else None,
        )
