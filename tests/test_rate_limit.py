"""
tests.test_rate_limit
~~~~~~~~~~~~~~~~~~~~~

EventRateLimiter 单元测试。
"""
from __future__ import annotations

from slip.core.rate_limit import EventRateLimiter


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_event_rate_limiter_interval() -> None:
    """间隔内的第二次事件被拒绝，超过间隔后放行。"""
    clock = FakeMonotonic()
    limiter = EventRateLimiter(interval_seconds=0.5, clock=clock)

    assert limiter.is_allowed("sid1") is True
    assert limiter.is_allowed("sid1") is False
    # 不同连接互不影响
    assert limiter.is_allowed("sid2") is True

    clock.now += 0.6
    assert limiter.is_allowed("sid1") is True


def test_event_rate_limiter_remove_client() -> None:
    clock = FakeMonotonic()
    limiter = EventRateLimiter(interval_seconds=10, clock=clock)
    limiter.is_allowed("sid1")

    limiter.remove_client("sid1")
    limiter.remove_client("sid1")

    assert "sid1" not in limiter._last_event_time
    assert limiter.is_allowed("sid1") is True


def test_zero_interval_disables_limit() -> None:
    limiter = EventRateLimiter(interval_seconds=0)

    assert all(limiter.is_allowed("sid1") for _ in range(10))
