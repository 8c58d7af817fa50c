"""
slip.services.room_codes
~~~~~~~~~~~~~~~~~~~~~~~~

房间码生成器。

字母表去掉了容易看错的 ``I`` / ``O`` / ``0`` / ``1``，方便口头或手写传递。
生成器本身不检查唯一性，由 ``RoomRegistry`` 负责冲突重试。
"""
from __future__ import annotations

import random
import secrets

CODE_ALPHABET: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH: int = 5


def generate_room_code(length: int = CODE_LENGTH, rng: random.Random | None = None) -> str:
    """均匀随机生成一个房间码。

    Args:
        length: 房间码长度。
        rng: 可选的随机数发生器（测试时传入固定 seed），默认使用 ``secrets``。
    """
    choose = rng.choice if rng is not None else secrets.choice
    return "".join(choose(CODE_ALPHABET) for _ in range(length))


def is_valid_code(code: str, length: int = CODE_LENGTH) -> bool:
    """校验房间码格式（长度 + 字母表），不关心房间是否存在。"""
    return len(code) == length and all(ch in CODE_ALPHABET for ch in code)
