"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures：可控时钟、独立的房间注册表与派对服务，
使房间生命周期测试不依赖真实时间和网络。
"""
from __future__ import annotations

import os
import random

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")  # 激活 .env.test 配置

from slip.services.party_service import PartyService  # noqa: E402
from slip.services.room_codes import generate_room_code  # noqa: E402
from slip.services.room_registry import RoomRegistry  # noqa: E402


class FakeClock:
    """手动推进的毫秒时钟。"""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry(clock: FakeClock) -> RoomRegistry:
    """固定 seed 的注册表，房间码可复现。"""
    rng = random.Random(42)
    return RoomRegistry(
        ttl_ms=3_600_000,
        max_players=6,
        code_factory=lambda length: generate_room_code(length, rng=rng),
        clock=clock,
    )


@pytest.fixture()
def service(registry: RoomRegistry) -> PartyService:
    return PartyService(registry)
