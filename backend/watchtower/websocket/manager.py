"""WebSocket connection manager relaying engine events to clients."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import WebSocket
from pydantic import BaseModel

from watchtower.core.notices import Event, LocationUpdatedEvent, NoticeEvent
from watchtower.schemas.location import LocationOut
from watchtower.websocket.schemas import LocationUpdateMessage, NoticeMessage

logger = logging.getLogger(__name__)


@dataclass
class ClientSubscription:
    """Tracks which user a connection belongs to."""

    websocket: WebSocket
    user_id: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def wants(self, event: Event) -> bool:
        """Location updates go to everyone; notices only to their user."""
        if isinstance(event, NoticeEvent):
            return event.user_id == self.user_id
        return True


class ConnectionManager:
    """
    Manages WebSocket connections and relays NoticeBus events.

    Designed for single-instance deployment; one process owns the registry.
    """

    def __init__(self):
        self._connections: dict[WebSocket, ClientSubscription] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        """Number of active connections."""
        return len(self._connections)

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections[websocket] = ClientSubscription(
                websocket=websocket, user_id=user_id
            )
        logger.info(f"WebSocket connected. Total connections: {self.connection_count}")

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a disconnected WebSocket."""
        async with self._lock:
            if websocket in self._connections:
                del self._connections[websocket]
        logger.info(f"WebSocket disconnected. Total connections: {self.connection_count}")

    def _message_for(self, event: Event) -> BaseModel:
        timestamp = datetime.now(UTC)
        if isinstance(event, LocationUpdatedEvent):
            return LocationUpdateMessage(
                data=[LocationOut.from_location(event.location)],
                timestamp=timestamp,
            )
        return NoticeMessage(notice=event.notice, timestamp=timestamp)

    async def handle_event(self, event: Event) -> None:
        """NoticeBus listener: send the event to every interested client."""
        async with self._lock:
            if not self._connections:
                return

            message = self._message_for(event)
            tasks = [
                self._send_safe(websocket, message)
                for websocket, subscription in list(self._connections.items())
                if subscription.wants(event)
            ]

            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)
                logger.debug(f"Sent {message.type} to {len(tasks)} subscribers")

    async def _send_safe(self, websocket: WebSocket, message: BaseModel) -> None:
        """Send message to websocket, handling errors gracefully."""
        try:
            await websocket.send_json(message.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to send to websocket: {e}")
            # Schedule disconnect (don't do it here to avoid deadlock)
            asyncio.create_task(self.disconnect(websocket))


# Global singleton instance
manager = ConnectionManager()
