"""WebSocket router for live location updates and user notices."""

import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from watchtower.core.session import Identity
from watchtower.websocket.manager import manager
from watchtower.websocket.schemas import (
    ErrorMessage,
    GeofenceMessage,
    PongMessage,
    PositionMessage,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/locations")
async def websocket_locations(
    websocket: WebSocket,
    user_id: str = Query(..., min_length=1, max_length=128),
):
    """
    WebSocket endpoint for live location updates.

    Protocol:
    - Client connects with ?user_id=...
    - Server pushes location updates for every report and expiry
    - Server pushes notices addressed to this user
    - Client may stream position readings instead of POSTing them
    - Server sends pong in response to ping for keep-alive

    Message formats:
    Client -> Server:
        {"type": "position", "latitude": 37.575, "longitude": -77.540}
        {"type": "ping"}

    Server -> Client:
        {"type": "location_update", "data": [...], "timestamp": "..."}
        {"type": "notice", "notice": {"kind": "out_of_bounds", "message": "..."}, "timestamp": "..."}
        {"type": "geofence", "status": "inside"}
        {"type": "pong"}
        {"type": "error", "message": "..."}
    """
    engine = websocket.app.state.engine
    identity = Identity(user_id=user_id)
    await manager.connect(websocket, user_id)

    try:
        while True:
            raw_message = await websocket.receive_text()

            try:
                data = json.loads(raw_message)
                msg_type = data.get("type")

                if msg_type == "position":
                    msg = PositionMessage.model_validate(data)
                    status = engine.update_position(identity, msg.latitude, msg.longitude)
                    await websocket.send_json(GeofenceMessage(status=status).model_dump())

                elif msg_type == "ping":
                    await websocket.send_json(PongMessage().model_dump())

                else:
                    error = ErrorMessage(message=f"Unknown message type: {msg_type}")
                    await websocket.send_json(error.model_dump())

            except json.JSONDecodeError:
                error = ErrorMessage(message="Invalid JSON")
                await websocket.send_json(error.model_dump())
            except ValidationError as e:
                error = ErrorMessage(message=f"Invalid message: {e.error_count()} error(s)")
                await websocket.send_json(error.model_dump())

    except WebSocketDisconnect:
        await manager.disconnect(websocket)
    except Exception as e:
        logger.exception(f"WebSocket error: {e}")
        await manager.disconnect(websocket)
