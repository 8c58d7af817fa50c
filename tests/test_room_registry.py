"""
tests.test_room_registry
~~~~~~~~~~~~~~~~~~~~~~~~

RoomRegistry 单元测试：房间码分配、查找、删除与过期清理。
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest

from slip.services.room_codes import CODE_ALPHABET
from slip.services.room_errors import RoomError, RoomErrorKind
from slip.services.room_registry import RoomRegistry


class TestCreateAndLookup:
    """创建与查找。"""

    def test_create_many_rooms_unique_codes(self, registry: RoomRegistry) -> None:
        """连续创建 N 个房间，房间码互不重复且格式合法。"""
        codes = [registry.create_room().code for _ in range(300)]

        assert len(set(codes)) == 300
        assert len(registry) == 300
        for code in codes:
            assert len(code) == 5
            assert set(code) <= set(CODE_ALPHABET)

    def test_create_retries_on_collision(self, clock) -> None:
        """房间码冲突时应重新生成。"""
        sequence: Iterator[str] = iter(["AAAAA", "AAAAA", "AAAAA", "BBBBB"])
        registry = RoomRegistry(code_factory=lambda length: next(sequence), clock=clock)

        first = registry.create_room()
        second = registry.create_room()

        assert first.code == "AAAAA"
        assert second.code == "BBBBB"

    def test_create_gives_up_when_code_space_exhausted(self, clock) -> None:
        registry = RoomRegistry(code_factory=lambda length: "AAAAA", clock=clock)
        registry.create_room()

        with pytest.raises(RuntimeError):
            registry.create_room()

    def test_new_room_is_empty_lobby(self, registry: RoomRegistry, clock) -> None:
        room = registry.create_room()

        assert room.players == []
        assert room.started is False
        assert room.created_at == clock.now
        assert room.max_players == 6

    def test_lookup_is_case_insensitive(self, registry: RoomRegistry) -> None:
        room = registry.create_room()

        assert registry.get_room(room.code.lower()) is room
        assert registry.get_room(f"  {room.code.lower()} ") is room
        assert room.code.lower() in registry

    def test_lookup_missing_returns_none(self, registry: RoomRegistry) -> None:
        assert registry.get_room("ZZZZZ") is None

    def test_require_room_raises_not_found(self, registry: RoomRegistry) -> None:
        with pytest.raises(RoomError) as exc_info:
            registry.require_room("zzzzz")
        assert exc_info.value.kind is RoomErrorKind.ROOM_NOT_FOUND
        assert exc_info.value.code == "ZZZZZ"


class TestDeletion:
    """删除与成员离开。"""

    def test_delete_is_idempotent(self, registry: RoomRegistry) -> None:
        room = registry.create_room()

        registry.delete_room(room.code)
        registry.delete_room(room.code)

        assert registry.get_room(room.code) is None
        assert len(registry) == 0

    def test_removing_last_player_deletes_room(self, registry: RoomRegistry) -> None:
        room = registry.create_room()
        room.add_player("a", "Alice")

        alive = registry.remove_player(room, "a")

        assert alive is False
        assert registry.get_room(room.code) is None

    def test_removing_one_of_two_keeps_room(self, registry: RoomRegistry) -> None:
        room = registry.create_room()
        room.add_player("a", "Alice")
        room.add_player("b", "Bob")

        assert registry.remove_player(room, "a") is True
        assert registry.get_room(room.code) is room
        assert room.host.id == "b"

    def test_rooms_for_player(self, registry: RoomRegistry) -> None:
        first = registry.create_room()
        second = registry.create_room()
        registry.create_room()
        first.add_player("a", "Alice")
        second.add_player("a", "Alice")
        second.add_player("b", "Bob")

        assert registry.rooms_for_player("a") == [first, second]
        assert registry.rooms_for_player("b") == [second]
        assert registry.rooms_for_player("ghost") == []


class TestSweep:
    """过期清理。"""

    def test_idle_room_swept_after_ttl(self, registry: RoomRegistry, clock) -> None:
        """超过 TTL 未变更的房间即使有人也会被清理。"""
        room = registry.create_room()
        room.add_player("a", "Alice")

        clock.advance(3_600_000)
        assert registry.sweep_expired() == []

        clock.advance(1)
        assert registry.sweep_expired() == [room.code]
        assert registry.get_room(room.code) is None

    def test_activity_postpones_expiry(self, registry: RoomRegistry, clock) -> None:
        room = registry.create_room()
        room.add_player("a", "Alice")

        clock.advance(3_000_000)
        room.set_ready("a", True)
        clock.advance(3_000_000)

        assert registry.sweep_expired() == []
        assert registry.get_room(room.code) is room

    def test_empty_room_swept_immediately(self, registry: RoomRegistry) -> None:
        room = registry.create_room()

        assert registry.sweep_expired() == [room.code]
