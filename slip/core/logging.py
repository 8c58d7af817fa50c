"""
slip.core.logging
~~~~~~~~~~~~~~~~~

日志配置与连接上下文。

网关在处理每条 Socket.IO 事件时用 ``bind_sid(sid)`` 绑定当前连接，
``SidContextFilter`` 会把它写入每条日志记录的 ``sid`` 字段。
同一连接触发的服务层、注册表日志因此都能按 sid 串起来，
调用方不必在每条消息里重复传 sid。
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from slip.core.config import settings

# 日志格式：时间 | 级别 | 模块名 | 连接 | 消息
_LOG_FORMAT: str = "%(asctime)s | %(levelname)-7s | %(name)s | sid=%(sid)s | %(message)s"
_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

# 无连接上下文时（lifespan、清理任务、HTTP 请求）的占位值
NO_SID: str = "-"

# Socket.IO 每个心跳包都会打日志
_NOISY_LOGGERS: tuple[str, ...] = ("engineio", "socketio", "uvicorn.access")

_current_sid: ContextVar[str] = ContextVar("slip_sid", default=NO_SID)


class SidContextFilter(logging.Filter):
    """把当前连接 sid 注入日志记录。只补字段，从不丢弃记录。"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sid = _current_sid.get()
        return True


@contextmanager
def bind_sid(sid: str) -> Iterator[None]:
    """在 ``with`` 块内把日志上下文绑定到指定连接。"""
    token = _current_sid.set(sid)
    try:
        yield
    finally:
        _current_sid.reset(token)


def setup_logging() -> None:
    """根据当前环境配置全局日志。应在应用启动时调用一次。"""
    level = getattr(logging, settings.effective_log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=_LOG_FORMAT,
        datefmt=_DATE_FORMAT,
        stream=sys.stdout,
        force=True,  # 覆盖可能已有的 basicConfig
    )
    # 挂在 handler 上，第三方库的记录同样带 sid 字段，格式化不会缺键
    for handler in logging.getLogger().handlers:
        handler.addFilter(SidContextFilter())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """获取模块 logger，通常传 ``__name__``。"""
    return logging.getLogger(name)
