"""
slip.services.room_errors
~~~~~~~~~~~~~~~~~~~~~~~~~

房间状态机的可预期错误。

每种被守卫拒绝的操作都对应一个独立的 ``RoomErrorKind``，
网关据此向请求方返回稳定的、面向用户的提示文案。
"""
from __future__ import annotations

from enum import Enum


class RoomErrorKind(str, Enum):
    """房间操作被拒绝的原因。"""

    ROOM_NOT_FOUND = "RoomNotFound"
    ROOM_FULL = "RoomFull"
    GAME_ALREADY_STARTED = "GameAlreadyStarted"
    ALREADY_JOINED = "AlreadyJoined"
    PLAYER_NOT_FOUND = "PlayerNotFound"
    NOT_HOST = "NotHost"
    INSUFFICIENT_PLAYERS = "InsufficientPlayers"
    PLAYERS_NOT_READY = "PlayersNotReady"
    ALREADY_STARTED = "AlreadyStarted"


ERROR_MESSAGES: dict[RoomErrorKind, str] = {
    RoomErrorKind.ROOM_NOT_FOUND: "Room not found",
    RoomErrorKind.ROOM_FULL: "Room is full",
    RoomErrorKind.GAME_ALREADY_STARTED: "Game already started",
    RoomErrorKind.ALREADY_JOINED: "You are already in this room",
    RoomErrorKind.PLAYER_NOT_FOUND: "You are not in this room",
    RoomErrorKind.NOT_HOST: "Only the host can start the game",
    RoomErrorKind.INSUFFICIENT_PLAYERS: "At least 2 players are needed to start",
    RoomErrorKind.PLAYERS_NOT_READY: "All players must be ready",
    RoomErrorKind.ALREADY_STARTED: "Game has already started",
}

# 非房间守卫类的网关错误文案
INVALID_REQUEST_MESSAGE = "Invalid request"
RATE_LIMITED_MESSAGE = "Too many requests, slow down"
INTERNAL_ERROR_MESSAGE = "Something went wrong"


class RoomError(Exception):
    """房间守卫失败。属于正常业务分支，不应终止连接或进程。

    Attributes:
        kind: 错误类别。
        code: 相关房间码（可能为空）。
    """

    def __init__(self, kind: RoomErrorKind, code: str | None = None) -> None:
        self.kind = kind
        self.code = code
        super().__init__(f"{kind.value}: {code}" if code else kind.value)

    @property
    def message(self) -> str:
        """返回给客户端的提示文案。"""
        return ERROR_MESSAGES[self.kind]
