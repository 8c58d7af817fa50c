"""
slip.schemas.party
~~~~~~~~~~~~~~~~~~

派对模式的 Socket.IO 协议模型。

- 事件名常量（属于对外协议，必须与前端完全一致）
- 入站命令：``CreateRoom`` / ``JoinRoom`` / ``SetReady`` / ``StartRoom`` / ``Disconnect``，
  通过 ``kind`` 字段组成可辨识联合 ``RoomCommand``
- 出站数据：房间快照 ``RoomStateData``、开局通知、错误通知
- HTTP 查询：房间概要 ``RoomPreviewData``
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PLAYER_NAME = "Player"

# ── 事件名 ────────────────────────────────────────────────────────────

ROOM_CREATE = "room:create"
ROOM_JOIN = "room:join"
ROOM_SET_READY = "room:setReady"
ROOM_START = "room:start"

ROOM_STATE = "room:state"
ROOM_STARTED = "room:started"
ROOM_ERROR = "room:error"


def normalize_code(value: Any) -> str:
    """房间码统一去空白并转大写，非字符串视为空码。"""
    if not isinstance(value, str):
        return ""
    return value.strip().upper()


# ── 入站命令 ──────────────────────────────────────────────────────────

class _NamedCommand(BaseModel):
    name: str = Field(default=DEFAULT_PLAYER_NAME, description="玩家显示名")

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return DEFAULT_PLAYER_NAME
        return value.strip()


class _CodedCommand(BaseModel):
    code: str = Field(..., description="房间码（大小写不敏感）")

    @field_validator("code", mode="before")
    @classmethod
    def _clean_code(cls, value: Any) -> str:
        return normalize_code(value)


class CreateRoom(_NamedCommand):
    """``room:create {name}``"""

    kind: Literal["create"] = "create"


class JoinRoom(_NamedCommand, _CodedCommand):
    """``room:join {code, name}``"""

    kind: Literal["join"] = "join"


class SetReady(_CodedCommand):
    """``room:setReady {code, ready}``"""

    kind: Literal["set_ready"] = "set_ready"
    ready: bool = Field(..., description="玩家是否准备就绪")


class StartRoom(_CodedCommand):
    """``room:start {code}``"""

    kind: Literal["start"] = "start"


class Disconnect(BaseModel):
    """传输层断开连接（非客户端主动发送的事件）。"""

    kind: Literal["disconnect"] = "disconnect"


RoomCommand = Annotated[
    Union[CreateRoom, JoinRoom, SetReady, StartRoom, Disconnect],
    Field(discriminator="kind"),
]

# 客户端事件名 → 命令模型
EVENT_COMMANDS: dict[str, type[BaseModel]] = {
    ROOM_CREATE: CreateRoom,
    ROOM_JOIN: JoinRoom,
    ROOM_SET_READY: SetReady,
    ROOM_START: StartRoom,
}


# ── 出站数据 ──────────────────────────────────────────────────────────

class PlayerData(BaseModel):
    """快照中的单个玩家。"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="连接 ID")
    name: str = Field(..., description="显示名")
    ready: bool = Field(..., description="是否准备就绪")
    is_host: bool = Field(..., alias="isHost", description="是否房主")


class RoomStateData(BaseModel):
    """完整房间快照，每次变更都整体下发，客户端直接替换本地状态。"""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(..., description="房间码")
    created_at: int = Field(..., alias="createdAt", description="创建时间（毫秒时间戳）")
    started: bool = Field(..., description="是否已开局")
    players: list[PlayerData] = Field(..., description="按加入顺序排列的玩家列表")


class RoomPreviewData(BaseModel):
    """HTTP 查询用的房间概要，供加入前校验。不含任何连接 ID。"""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(..., description="房间码")
    started: bool = Field(..., description="是否已开局")
    player_count: int = Field(..., alias="playerCount", description="当前人数")
    max_players: int = Field(..., alias="maxPlayers", description="人数上限")
    player_names: list[str] = Field(..., alias="playerNames", description="按加入顺序排列的显示名")


class RoomStartedData(BaseModel):
    """``room:started`` 负载。"""

    code: str


class RoomErrorData(BaseModel):
    """``room:error`` 负载，只发给请求方。"""

    message: str
