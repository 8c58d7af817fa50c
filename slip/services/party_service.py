"""
slip.services.party_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~

派对模式命令核心。

``PartyService.dispatch(sid, command)`` 接收一条入站命令，调用注册表与房间状态机，
返回需要由传输层执行的出站副作用列表（订阅频道、解散频道或发送事件）。
``PartyService.sweep()`` 清理过期房间并为每个被删除的房间返回 ``CloseChannel``。
本模块不接触任何网络对象，便于脱离 Socket.IO 单独测试。
"""
from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field

from slip.core.logging import get_logger
from slip.schemas.party import (
    ROOM_ERROR,
    ROOM_STARTED,
    ROOM_STATE,
    CreateRoom,
    Disconnect,
    JoinRoom,
    RoomCommand,
    RoomErrorData,
    RoomStartedData,
    SetReady,
    StartRoom,
)
from slip.services.party_room import Room
from slip.services.room_errors import RoomError
from slip.services.room_registry import RoomRegistry

logger = get_logger(__name__)


# ── 出站副作用 ────────────────────────────────────────────────────────

class JoinChannel(BaseModel):
    """把连接订阅到房间频道。"""

    sid: str
    channel: str


class CloseChannel(BaseModel):
    """解散房间频道，所有订阅者退出。"""

    channel: str


class Emit(BaseModel):
    """向频道（房间码）或单个连接（sid）发送事件。"""

    event: str
    to: str
    payload: dict[str, Any] = Field(default_factory=dict)


Effect = Union[JoinChannel, CloseChannel, Emit]


def state_event(room: Room) -> Emit:
    """向房间频道广播完整快照。"""
    return Emit(
        event=ROOM_STATE,
        to=room.code,
        payload=room.snapshot().model_dump(by_alias=True),
    )


def error_event(sid: str, message: str) -> Emit:
    """只发给请求方的错误通知。"""
    return Emit(event=ROOM_ERROR, to=sid, payload=RoomErrorData(message=message).model_dump())


class PartyService:
    """派对模式业务服务。

    持有 ``RoomRegistry``，把命令翻译为房间状态迁移和出站副作用。
    可预期的 ``RoomError`` 在这里被转换为单播错误事件，其余异常向上抛给网关边界。

    Attributes:
        registry: 房间注册表。
    """

    def __init__(self, registry: RoomRegistry) -> None:
        self.registry = registry
        self._handlers = {
            CreateRoom: self._create,
            JoinRoom: self._join,
            SetReady: self._set_ready,
            StartRoom: self._start,
            Disconnect: self._disconnect,
        }

    def dispatch(self, sid: str, command: RoomCommand) -> list[Effect]:
        """执行一条命令，返回出站副作用（按顺序执行）。"""
        handler = self._handlers[type(command)]
        try:
            return handler(sid, command)
        except RoomError as e:
            logger.info("房间操作被拒绝 | kind=%s | code=%s", e.kind.value, e.code)
            return [error_event(sid, e.message)]

    # ── 命令处理 ──────────────────────────────────────────────────────

    def _create(self, sid: str, command: CreateRoom) -> list[Effect]:
        room = self.registry.create_room()
        room.add_player(sid, command.name)
        logger.info("玩家创建房间 | code=%s | name=%s", room.code, command.name)
        return [JoinChannel(sid=sid, channel=room.code), state_event(room)]

    def _join(self, sid: str, command: JoinRoom) -> list[Effect]:
        room = self.registry.require_room(command.code)
        room.add_player(sid, command.name)
        logger.info(
            "玩家加入房间 | code=%s | name=%s | 人数: %d",
            room.code, command.name, len(room.players),
        )
        return [JoinChannel(sid=sid, channel=room.code), state_event(room)]

    def _set_ready(self, sid: str, command: SetReady) -> list[Effect]:
        room = self.registry.require_room(command.code)
        room.set_ready(sid, command.ready)
        return [state_event(room)]

    def _start(self, sid: str, command: StartRoom) -> list[Effect]:
        room = self.registry.require_room(command.code)
        room.start(sid)
        logger.info("房间已开局 | code=%s | 人数: %d", room.code, len(room.players))
        return [
            state_event(room),
            Emit(event=ROOM_STARTED, to=room.code, payload=RoomStartedData(code=room.code).model_dump()),
        ]

    def _disconnect(self, sid: str, command: Disconnect) -> list[Effect]:
        effects: list[Effect] = []
        for room in self.registry.rooms_for_player(sid):
            if self.registry.remove_player(room, sid):
                logger.info("玩家离开房间 | code=%s | 剩余: %d", room.code, len(room.players))
                effects.append(state_event(room))
        return effects

    # ── 过期清理 ──────────────────────────────────────────────────────

    def sweep(self) -> list[Effect]:
        """清理过期房间，并解散它们的频道。

        房间码可能被重新分配，旧频道里残留的连接不能收到新房间的快照。
        """
        return [CloseChannel(channel=code) for code in self.registry.sweep_expired()]
