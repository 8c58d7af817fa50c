"""
slip.services.party_room
~~~~~~~~~~~~~~~~~~~~~~~~

派对房间领域模型：单个房间的成员规则与状态迁移。

状态只有两个：``lobby``（``started=False``）→ ``active``（``started=True``），
且只能单向迁移。所有守卫失败都抛出 ``RoomError``。

房主继承规则：``players`` 是按加入顺序排列的列表，
房主离开后由剩余玩家中最早加入的一位（即列表第一位）接任。
"""
from __future__ import annotations

from collections.abc import Callable

from slip.schemas.party import PlayerData, RoomPreviewData, RoomStateData
from slip.services.room_errors import RoomError, RoomErrorKind

MAX_PLAYERS: int = 6
MIN_PLAYERS_TO_START: int = 2


class Player:
    """一个连接在某个房间里的身份。

    Attributes:
        id: 连接 ID，唯一身份标识。
        name: 显示名（不要求唯一）。
        ready: 是否准备就绪。
        is_host: 是否房主。
    """

    def __init__(self, player_id: str, name: str, is_host: bool = False) -> None:
        self.id = player_id
        self.name = name
        self.ready = False
        self.is_host = is_host

    def to_data(self) -> PlayerData:
        return PlayerData(id=self.id, name=self.name, ready=self.ready, is_host=self.is_host)


class Room:
    """一个派对房间。

    只应通过 ``RoomRegistry`` 创建和删除；每次变更都会刷新 ``updated_at``。

    Attributes:
        code: 房间码，创建后不可变。
        created_at: 创建时间（毫秒时间戳）。
        updated_at: 最近一次变更时间（毫秒时间戳），用于过期清理。
        started: 是否已开局（单向标志）。
        players: 按加入顺序排列的玩家列表。
        max_players: 人数上限。
    """

    def __init__(
        self,
        code: str,
        clock: Callable[[], int],
        max_players: int = MAX_PLAYERS,
    ) -> None:
        self.code = code
        self._clock = clock
        self.max_players = max_players
        self.created_at: int = clock()
        self.updated_at: int = self.created_at
        self.started: bool = False
        self.players: list[Player] = []

    # ── 查询 ──────────────────────────────────────────────────────────

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def host(self) -> Player | None:
        """当前房主，空房间返回 ``None``。"""
        return next((p for p in self.players if p.is_host), None)

    @property
    def all_ready(self) -> bool:
        """人数达到开局下限且所有人都已准备。"""
        return len(self.players) >= MIN_PLAYERS_TO_START and all(p.ready for p in self.players)

    def get_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.id == player_id), None)

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def snapshot(self) -> RoomStateData:
        """返回完整房间快照。"""
        return RoomStateData(
            code=self.code,
            created_at=self.created_at,
            started=self.started,
            players=[p.to_data() for p in self.players],
        )

    def preview(self) -> RoomPreviewData:
        """对外公开的房间概要，只有显示名，不暴露连接 ID。"""
        return RoomPreviewData(
            code=self.code,
            started=self.started,
            player_count=len(self.players),
            max_players=self.max_players,
            player_names=[p.name for p in self.players],
        )

    # ── 状态迁移 ──────────────────────────────────────────────────────

    def touch(self) -> None:
        """刷新最近变更时间。"""
        self.updated_at = self._clock()

    def add_player(self, player_id: str, name: str) -> Player:
        """玩家加入房间。空房间的第一位玩家自动成为房主。

        Raises:
            RoomError: ``GAME_ALREADY_STARTED`` / ``ALREADY_JOINED`` / ``ROOM_FULL``。
        """
        if self.started:
            raise RoomError(RoomErrorKind.GAME_ALREADY_STARTED, self.code)
        if self.has_player(player_id):
            raise RoomError(RoomErrorKind.ALREADY_JOINED, self.code)
        if len(self.players) >= self.max_players:
            raise RoomError(RoomErrorKind.ROOM_FULL, self.code)

        player = Player(player_id, name, is_host=self.is_empty)
        self.players.append(player)
        self.touch()
        return player

    def remove_player(self, player_id: str) -> Player | None:
        """移除玩家，不存在时返回 ``None``。

        被移除的是房主且房间仍有人时，列表第一位玩家接任房主。
        """
        player = self.get_player(player_id)
        if player is None:
            return None

        self.players.remove(player)
        if player.is_host and self.players:
            self._promote_next_host()
        self.touch()
        return player

    def _promote_next_host(self) -> None:
        successor = self.players[0]
        for p in self.players:
            p.is_host = p is successor

    def set_ready(self, player_id: str, ready: bool) -> Player:
        """设置玩家准备状态。开局后不再允许修改。

        Raises:
            RoomError: ``PLAYER_NOT_FOUND`` / ``GAME_ALREADY_STARTED``。
        """
        player = self.get_player(player_id)
        if player is None:
            raise RoomError(RoomErrorKind.PLAYER_NOT_FOUND, self.code)
        if self.started:
            raise RoomError(RoomErrorKind.GAME_ALREADY_STARTED, self.code)

        player.ready = ready
        self.touch()
        return player

    def start(self, player_id: str) -> None:
        """房主开局。成功后 ``started`` 永久为 ``True``。

        任一守卫失败时 ``started`` 保持不变。

        Raises:
            RoomError: ``PLAYER_NOT_FOUND`` / ``NOT_HOST`` / ``ALREADY_STARTED`` /
                ``INSUFFICIENT_PLAYERS`` / ``PLAYERS_NOT_READY``。
        """
        player = self.get_player(player_id)
        if player is None:
            raise RoomError(RoomErrorKind.PLAYER_NOT_FOUND, self.code)
        if not player.is_host:
            raise RoomError(RoomErrorKind.NOT_HOST, self.code)
        if self.started:
            raise RoomError(RoomErrorKind.ALREADY_STARTED, self.code)
        if len(self.players) < MIN_PLAYERS_TO_START:
            raise RoomError(RoomErrorKind.INSUFFICIENT_PLAYERS, self.code)
        if not all(p.ready for p in self.players):
            raise RoomError(RoomErrorKind.PLAYERS_NOT_READY, self.code)

        self.started = True
        self.touch()
