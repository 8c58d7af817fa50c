"""
tests.test_room_endpoints
~~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口测试（健康检查 + 房间概要查询）。
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from slip.core.rate_limit import limiter
from slip.main import app


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """启动完整 lifespan 的测试客户端，每个用例重置限流计数。"""
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["activeRooms"] == 0
    assert body["environment"] == "test"


def test_room_preview(client: TestClient) -> None:
    """已存在的房间返回概要，房间码大小写不敏感，不暴露连接 ID。"""
    registry = app.state.room_registry
    room = registry.create_room()
    room.add_player("sid-a", "Alice")
    room.add_player("sid-b", "Bob")

    resp = client.get(f"/api/rooms/{room.code.lower()}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 200
    assert body["data"] == {
        "code": room.code,
        "started": False,
        "playerCount": 2,
        "maxPlayers": 6,
        "playerNames": ["Alice", "Bob"],
    }
    assert "sid-a" not in resp.text
    assert client.get("/api/health").json()["activeRooms"] == 1


@pytest.mark.parametrize("code", ["ZZZZZ", "bad", "ABCD1"])
def test_room_not_found(client: TestClient, code: str) -> None:
    resp = client.get(f"/api/rooms/{code}")

    assert resp.status_code == 404
    assert resp.json() == {"code": 404, "data": None, "msg": "Room not found"}
