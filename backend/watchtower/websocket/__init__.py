"""WebSocket module for live location updates and notices."""

from watchtower.websocket.manager import ConnectionManager
from watchtower.websocket.router import router as websocket_router

__all__ = ["ConnectionManager", "websocket_router"]
