"""
Tests for the websocket notification hub and endpoint.
"""

import pytest
import uuid
from starlette.testclient import TestClient

from inmobi.main import app
from inmobi.models.property import Property, PropertyType
from inmobi.services.notifications import ConnectionState, NotificationHub, parse_filters
from tests.conftest import PropertyFactory


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    @property
    def types(self):
        return [message["type"] for message in self.sent]


def build_property(**overrides) -> Property:
    return Property(id=uuid.uuid4(), owner_id=uuid.uuid4(), **PropertyFactory.create_property_data(**overrides))


class TestParseFilters:
    def test_coerces_types(self):
        assert parse_filters({
            "location": " Austin ",
            "min_price": "100000",
            "property_type": "CONDO",
            "bathrooms": "1.5",
            "bedrooms": 2,
            "ignored": "x",
            "max_price": "",
        }) == {
            "location": "Austin",
            "min_price": 100000,
            "property_type": "condo",
            "bathrooms": 1.5,
            "bedrooms": 2,
        }

    def test_rejects_bad_values(self):
        with pytest.raises(ValueError):
            parse_filters({"min_price": "cheap"})
        with pytest.raises(ValueError):
            parse_filters({"property_type": "castle"})
        with pytest.raises(ValueError):
            parse_filters([1])
        with pytest.raises(ValueError):
            parse_filters({"min_price": float("inf")})
        with pytest.raises(ValueError):
            parse_filters({"max_price": "nan"})


class TestNotificationHub:
    @pytest.mark.asyncio
    async def test_connect_and_ping(self):
        hub = NotificationHub()
        socket = FakeSocket()

        await hub.connect(socket)
        await hub.handle_message(socket, {"type": "ping"})

        assert socket.types == ["connected", "pong"]
        assert hub.subscription_for(socket).state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_only_matching_subscribers_receive(self):
        hub = NotificationHub()
        austin, denver, idle = FakeSocket(), FakeSocket(), FakeSocket()
        for socket in (austin, denver, idle):
            await hub.connect(socket)

        await hub.handle_message(austin, {"type": "subscribe", "payload": {"filters": {"location": "austin", "max_price": 500000}}})
        await hub.handle_message(denver, {"type": "subscribe", "payload": {"location": "Denver"}})

        delivered = await hub.broadcast_property(build_property(price=450000))

        assert delivered == 1
        assert austin.types == ["connected", "subscribed", "new_property"]
        assert austin.sent[-1]["payload"]["property"]["price"] == 450000
        assert denver.types == ["connected", "subscribed"]
        assert idle.types == ["connected"]

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self):
        hub = NotificationHub()
        socket = FakeSocket()
        await hub.connect(socket)
        await hub.handle_message(socket, {"type": "subscribe"})
        await hub.handle_message(socket, {"type": "unsubscribe"})

        assert await hub.broadcast_property(build_property(property_type=PropertyType.LAND)) == 0
        assert hub.subscription_for(socket).state == ConnectionState.UNSUBSCRIBED

    @pytest.mark.asyncio
    async def test_invalid_messages(self):
        hub = NotificationHub()
        socket = FakeSocket()
        await hub.connect(socket)

        await hub.handle_message(socket, ["not", "an", "object"])
        await hub.handle_message(socket, {"type": "dance"})
        await hub.handle_message(socket, {"type": "subscribe", "payload": {"min_price": "abc"}})
        await hub.handle_message(socket, {"type": "subscribe", "payload": {"filters": [1]}})
        await hub.handle_message(socket, {"type": "subscribe", "payload": {"min_price": float("inf")}})

        assert socket.types == ["connected", "error", "error", "error", "error", "error"]
        assert hub.subscription_for(socket).state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_failed_send_drops_client(self):
        hub = NotificationHub()
        socket = FakeSocket()
        await hub.connect(socket)
        await hub.handle_message(socket, {"type": "subscribe"})
        socket.fail = True

        assert await hub.broadcast_property(build_property()) == 0
        assert hub.connection_count == 0


class TestNotificationEndpoint:
    def test_websocket_session(self):
        client = TestClient(app)
        with client.websocket_connect("/ws/notifications") as ws:
            assert ws.receive_json()["type"] == "connected"

            ws.send_text("not json")
            assert ws.receive_json() == {"type": "error", "payload": {"message": "Invalid JSON"}}

            ws.send_json({"type": "subscribe", "payload": {"filters": {"bedrooms": 2}}})
            reply = ws.receive_json()
            assert reply["type"] == "subscribed"
            assert reply["payload"]["filters"] == {"bedrooms": 2}

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
