"""
slip.main
~~~~~~~~~

应用入口：组装 FastAPI 与 Socket.IO、注册路由、定义生命周期。

对外暴露的 ASGI 应用是 ``asgi_app``：``/socket.io/`` 路径由 Socket.IO 处理，
其余请求（含 lifespan 事件）转交给 FastAPI。
"""
from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from slip.api import room_endpoints
from slip.api.party_gateway import PartyGateway, create_socket_server
from slip.core.config import settings
from slip.core.logging import get_logger, setup_logging
from slip.core.rate_limit import EventRateLimiter, limiter
from slip.schemas.api_response import ApiResponse
from slip.services.party_service import PartyService
from slip.services.room_registry import RoomRegistry

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)

sio: socketio.AsyncServer = create_socket_server(settings)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子，仅在 worker 启动/关闭时各执行一次。"""
    # ── 启动 ──
    registry = RoomRegistry(
        ttl_ms=settings.ROOM_TTL_MS,
        max_players=settings.ROOM_MAX_PLAYERS,
        code_length=settings.ROOM_CODE_LENGTH,
    )
    gateway = PartyGateway(
        sio=sio,
        service=PartyService(registry),
        limiter=EventRateLimiter(interval_seconds=settings.EVENT_RATE_LIMIT_INTERVAL),
    )
    gateway.register()
    app.state.room_registry = registry
    app.state.party_gateway = gateway

    sweeper = asyncio.create_task(gateway.sweep_forever(settings.ROOM_SWEEP_INTERVAL_MS / 1000))
    logger.info(
        "🚀 应用已启动 | env=%s | debug=%s | log_level=%s",
        settings.ENVIRONMENT,
        settings.debug,
        settings.effective_log_level,
    )
    yield
    # ── 关闭 ──
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    logger.info("👋 应用已关闭 | 丢弃房间数: %d", len(registry))


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="Slip 派对模式房间服务",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

# ── 限流 ──────────────────────────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS 中间件 ───────────────────────────────────────────────────────
if settings.allow_cors_all_origins:
    # dev / test 环境：允许所有来源，方便本地调试
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(room_endpoints.router, prefix="/api", tags=["Party Rooms"])


# ── 全局异常处理器 ────────────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """捕获所有未处理异常，返回统一的 ApiResponse.fail() 格式。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    # 非 prod 环境返回详细错误信息，prod 环境隐藏内部细节
    detail = str(exc) if not settings.is_prod else "服务器内部错误"
    return ApiResponse.fail(msg=detail, code=500).to_response()


# ── Socket.IO 挂载 ────────────────────────────────────────────────────
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "slip.main:asgi_app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
    )
