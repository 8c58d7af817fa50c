"""
slip.api.party_gateway
~~~~~~~~~~~~~~~~~~~~~~

Socket.IO 实时网关：派对模式。

把客户端事件解析为命令，交给 ``PartyService`` 执行，再把返回的副作用
（订阅房间频道、解散频道、广播快照、单播错误）落到 Socket.IO 上。网关本身不持有房间状态，
连接与频道的对应关系由 Socket.IO 维护。

事件协议:
  - 入站：``room:create`` / ``room:join`` / ``room:setReady`` / ``room:start``
  - 出站：``room:state``（频道广播）/ ``room:started``（频道广播）/ ``room:error``（单播）

后台清理任务 ``sweep_forever`` 也由网关驱动：被清理房间的频道会同时解散，
房间码日后被重新分配时，旧连接不会收到新房间的快照。
"""
from __future__ import annotations

import asyncio
from typing import Any

import socketio
from pydantic import ValidationError

from slip.core.config import Settings
from slip.core.logging import bind_sid, get_logger
from slip.core.rate_limit import EventRateLimiter
from slip.schemas.party import (
    EVENT_COMMANDS,
    ROOM_CREATE,
    ROOM_JOIN,
    Disconnect,
)
from slip.services.party_service import CloseChannel, Effect, JoinChannel, PartyService, error_event
from slip.services.room_errors import (
    INTERNAL_ERROR_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    RATE_LIMITED_MESSAGE,
)

logger = get_logger(__name__)

# 受限流保护的事件（会分配新资源的操作）
RATE_LIMITED_EVENTS: frozenset[str] = frozenset({ROOM_CREATE, ROOM_JOIN})


def create_socket_server(settings: Settings) -> socketio.AsyncServer:
    """创建 ASGI 模式的 Socket.IO 服务端。"""
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.allowed_origins,
        logger=False,
        engineio_logger=False,
    )


class PartyGateway:
    """Socket.IO 与 ``PartyService`` 之间的薄适配层。

    Attributes:
        sio: Socket.IO 服务端。
        service: 派对命令核心。
        limiter: 按连接的事件限流器。
    """

    def __init__(
        self,
        sio: socketio.AsyncServer,
        service: PartyService,
        limiter: EventRateLimiter,
    ) -> None:
        self.sio = sio
        self.service = service
        self.limiter = limiter

    def register(self) -> None:
        """把所有事件处理器挂到 Socket.IO 服务端。"""
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        for event in EVENT_COMMANDS:
            self.sio.on(event, self._make_handler(event))

    def _make_handler(self, event: str):
        async def handler(sid: str, data: Any = None) -> None:
            await self.handle_event(sid, event, data)

        return handler

    # ── 事件处理 ──────────────────────────────────────────────────────

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        with bind_sid(sid):
            logger.debug("连接建立")

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        """传输层断开：从所在房间移除并通知剩余玩家。"""
        with bind_sid(sid):
            logger.debug("连接断开 | reason=%s", reason)
            self.limiter.remove_client(sid)
            try:
                await self.apply(self.service.dispatch(sid, Disconnect()))
            except Exception as e:
                logger.error("断开处理异常: %s", e, exc_info=True)

    async def handle_event(self, sid: str, event: str, data: Any) -> None:
        """解析并执行一条客户端事件。所有异常都在这里收口，不会影响连接。"""
        with bind_sid(sid):
            await self._handle_event(sid, event, data)

    async def _handle_event(self, sid: str, event: str, data: Any) -> None:
        if event in RATE_LIMITED_EVENTS and not self.limiter.is_allowed(sid):
            logger.warning("事件过于频繁，已拒绝 | event=%s", event)
            await self.apply([error_event(sid, RATE_LIMITED_MESSAGE)])
            return

        model = EVENT_COMMANDS[event]
        try:
            command = model.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            logger.info("事件负载非法 | event=%s | errors=%d", event, e.error_count())
            await self.apply([error_event(sid, INVALID_REQUEST_MESSAGE)])
            return

        try:
            await self.apply(self.service.dispatch(sid, command))
        except Exception as e:
            logger.error("事件处理异常: %s | event=%s", e, event, exc_info=True)
            await self.apply([error_event(sid, INTERNAL_ERROR_MESSAGE)])

    async def apply(self, effects: list[Effect]) -> None:
        """按顺序执行副作用。广播不等待客户端确认。"""
        for effect in effects:
            if isinstance(effect, JoinChannel):
                await self.sio.enter_room(effect.sid, effect.channel)
            elif isinstance(effect, CloseChannel):
                await self.sio.close_room(effect.channel)
            else:
                await self.sio.emit(effect.event, effect.payload, to=effect.to)

    # ── 过期清理 ──────────────────────────────────────────────────────

    async def sweep(self) -> None:
        """清理一次过期房间并解散其频道。"""
        effects = self.service.sweep()
        await self.apply(effects)
        if effects:
            logger.debug("已解散过期房间频道 | channels=%s", [e.channel for e in effects])

    async def sweep_forever(self, interval_seconds: float) -> None:
        """按固定间隔循环清理，直到任务被取消。单次失败只记日志，不终止循环。"""
        logger.info("房间清理任务已启动 | interval=%.1fs", interval_seconds)
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("房间清理异常: %s", e, exc_info=True)
