"""
slip.services.room_registry
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间注册表：进程内所有派对房间的唯一持有者。

负责房间码分配、查找、删除以及过期清理。所有操作都是同步的内存字典操作，
在单事件循环下天然不会交错执行。

实例在 FastAPI lifespan 中创建并挂载于 ``app.state``，测试可自由创建独立实例。
"""
from __future__ import annotations

import time
from collections.abc import Callable

from slip.core.logging import get_logger
from slip.schemas.party import normalize_code
from slip.services.party_room import MAX_PLAYERS, Room
from slip.services.room_codes import CODE_LENGTH, generate_room_code
from slip.services.room_errors import RoomError, RoomErrorKind

logger = get_logger(__name__)

ROOM_TTL_MS: int = 3_600_000
_MAX_CODE_ATTEMPTS: int = 1000


def now_ms() -> int:
    """当前时间（毫秒时间戳）。"""
    return int(time.time() * 1000)


class RoomRegistry:
    """派对房间注册表。

    - ``create_room()``               → 分配唯一房间码并创建空房间
    - ``get_room(code)``              → 大小写不敏感查找，不存在返回 ``None``
    - ``require_room(code)``          → 同上，不存在抛 ``RoomError``
    - ``remove_player(room, id)``     → 移除玩家，房间变空时立即删除
    - ``sweep_expired()``             → 清理闲置超时或已空的房间

    Attributes:
        ttl_ms: 房间闲置超时（毫秒）。
        max_players: 新房间的人数上限。
    """

    def __init__(
        self,
        ttl_ms: int = ROOM_TTL_MS,
        max_players: int = MAX_PLAYERS,
        code_length: int = CODE_LENGTH,
        code_factory: Callable[[int], str] = generate_room_code,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.ttl_ms = ttl_ms
        self.max_players = max_players
        self.code_length = code_length
        self._code_factory = code_factory
        self._clock = clock
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        return normalize_code(code) in self._rooms

    @property
    def codes(self) -> list[str]:
        return list(self._rooms)

    def create_room(self) -> Room:
        """创建一个空房间，房间码与所有存活房间不冲突。"""
        code = self._allocate_code()
        room = Room(code=code, clock=self._clock, max_players=self.max_players)
        self._rooms[code] = room
        logger.info("房间已创建 | code=%s | 当前房间数: %d", code, len(self._rooms))
        return room

    def _allocate_code(self) -> str:
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = self._code_factory(self.code_length)
            if code not in self._rooms:
                return code
        raise RuntimeError(f"无法分配房间码，已尝试 {_MAX_CODE_ATTEMPTS} 次")

    def get_room(self, code: str) -> Room | None:
        """按房间码查找（大小写不敏感）。"""
        return self._rooms.get(normalize_code(code))

    def require_room(self, code: str) -> Room:
        """按房间码查找，不存在时抛出 ``ROOM_NOT_FOUND``。"""
        room = self.get_room(code)
        if room is None:
            raise RoomError(RoomErrorKind.ROOM_NOT_FOUND, normalize_code(code))
        return room

    def delete_room(self, code: str) -> None:
        """删除房间，重复删除无副作用。"""
        if self._rooms.pop(normalize_code(code), None) is not None:
            logger.info("房间已删除 | code=%s | 当前房间数: %d", code, len(self._rooms))

    def rooms_for_player(self, player_id: str) -> list[Room]:
        """返回包含该连接的所有存活房间。"""
        return [room for room in self._rooms.values() if room.has_player(player_id)]

    def remove_player(self, room: Room, player_id: str) -> bool:
        """从房间移除玩家，房间变空时立即删除。

        Returns:
            房间是否仍然存活。
        """
        room.remove_player(player_id)
        if room.is_empty:
            self.delete_room(room.code)
            return False
        return True

    def sweep_expired(self) -> list[str]:
        """删除闲置超过 TTL 或已无玩家的房间，返回被删除的房间码。"""
        now = self._clock()
        expired = [
            code
            for code, room in self._rooms.items()
            if room.is_empty or now - room.updated_at > self.ttl_ms
        ]
        for code in expired:
            self.delete_room(code)
        if expired:
            logger.info("过期房间清理完成 | 删除 %d 个 | 剩余 %d 个", len(expired), len(self._rooms))
        return expired
