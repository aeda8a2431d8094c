import json

import anyio
import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import TestingSessionLocal
from yardpass.api import ws
from yardpass.services.auth import create_user_token
from yardpass.services.scan_events import ScanEventManager


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.accepted = False
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_text(self, message: str):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(message))


def test_broadcast_reaches_only_same_building_and_superuser():
    manager = ScanEventManager()
    first, second, everything = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()

    async def scenario():
        await manager.connect(first, 1)
        await manager.connect(second, 2)
        await manager.connect(everything, None)
        return await manager.broadcast({"type": "scan_event", "valid": True}, 1)

    delivered = anyio.run(scenario)

    assert delivered == 2
    assert first.accepted
    assert first.sent == [{"type": "scan_event", "valid": True}]
    assert second.sent == []
    assert everything.sent == [{"type": "scan_event", "valid": True}]


def test_broken_subscriber_is_dropped():
    manager = ScanEventManager()
    broken, alive = FakeWebSocket(fail=True), FakeWebSocket()

    async def scenario():
        await manager.connect(broken, 1)
        await manager.connect(alive, 1)
        first = await manager.broadcast({"n": 1}, 1)
        second = await manager.broadcast({"n": 2}, 1)
        return first, second

    assert anyio.run(scenario) == (1, 1)
    assert alive.sent == [{"n": 1}, {"n": 2}]


class TestScanEventsWebSocket:
    @pytest.fixture(autouse=True)
    def _session(self, monkeypatch):
        monkeypatch.setattr(ws, "SessionLocal", TestingSessionLocal)

    def test_guard_subscribes_to_own_building(self, client, seed):
        token = create_user_token(seed.guard)
        with client.websocket_connect(f"/ws/scan-events?token={token}") as socket:
            assert socket.receive_json() == {"type": "subscribed", "building_id": seed.building.id}

    def test_superuser_subscribes_to_all_buildings(self, client, seed):
        token = create_user_token(seed.superuser)
        with client.websocket_connect(f"/ws/scan-events?token={token}") as socket:
            assert socket.receive_json() == {"type": "subscribed", "building_id": None}

    def test_invalid_token_is_rejected(self, client, seed):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/scan-events?token=garbage") as socket:
                socket.receive_json()
