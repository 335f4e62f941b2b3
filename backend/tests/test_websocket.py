"""Tests for WebSocket connection manager."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from watchtower.core.notices import (
    GeneralNotice,
    LocationUpdatedEvent,
    NoticeEvent,
    OutOfBoundsNotice,
)
from watchtower.core.registry import Location
from watchtower.websocket.manager import ClientSubscription, ConnectionManager


@pytest.fixture
def location_event() -> LocationUpdatedEvent:
    return LocationUpdatedEvent(
        Location("lot-a", "Lot A", 0.2, 0.2, (datetime(2024, 9, 3, 12, 0, tzinfo=UTC),))
    )


class TestClientSubscription:
    """Tests for ClientSubscription."""

    def test_location_updates_go_to_everyone(self, location_event):
        sub = ClientSubscription(websocket=MagicMock(), user_id="alice")

        assert sub.wants(location_event) is True

    def test_notices_only_for_their_user(self):
        sub = ClientSubscription(websocket=MagicMock(), user_id="alice")

        assert sub.wants(NoticeEvent("alice", OutOfBoundsNotice())) is True
        assert sub.wants(NoticeEvent("bob", OutOfBoundsNotice())) is False


class TestConnectionManager:
    """Tests for ConnectionManager."""

    @pytest.mark.asyncio
    async def test_connect(self):
        manager = ConnectionManager()
        ws = AsyncMock()

        await manager.connect(ws, "alice")

        assert manager.connection_count == 1
        ws.accept.assert_called_once()

    @pytest.mark.asyncio
    async def test_disconnect(self):
        manager = ConnectionManager()
        ws = AsyncMock()

        await manager.connect(ws, "alice")
        await manager.disconnect(ws)

        assert manager.connection_count == 0

    @pytest.mark.asyncio
    async def test_location_update_broadcast(self, location_event):
        manager = ConnectionManager()
        ws1, ws2 = AsyncMock(), AsyncMock()
        await manager.connect(ws1, "alice")
        await manager.connect(ws2, "bob")

        await manager.handle_event(location_event)

        for ws in (ws1, ws2):
            message = ws.send_json.call_args.args[0]
            assert message["type"] == "location_update"
            assert message["data"][0]["id"] == "lot-a"
            assert message["data"][0]["report_count"] == 1
            assert message["data"][0]["severity"] == "low"

    @pytest.mark.asyncio
    async def test_notice_goes_to_one_user(self):
        manager = ConnectionManager()
        ws1, ws2 = AsyncMock(), AsyncMock()
        await manager.connect(ws1, "alice")
        await manager.connect(ws2, "bob")

        await manager.handle_event(NoticeEvent("bob", GeneralNotice(message="hello")))

        ws1.send_json.assert_not_called()
        message = ws2.send_json.call_args.args[0]
        assert message["type"] == "notice"
        assert message["notice"] == {"kind": "general", "message": "hello"}

    @pytest.mark.asyncio
    async def test_no_connections(self, location_event):
        manager = ConnectionManager()

        await manager.handle_event(location_event)  # Should not raise

    @pytest.mark.asyncio
    async def test_failed_send_is_absorbed(self, location_event):
        manager = ConnectionManager()
        ws = AsyncMock()
        ws.send_json.side_effect = RuntimeError("socket closed")
        await manager.connect(ws, "alice")

        await manager.handle_event(location_event)  # Should not raise
