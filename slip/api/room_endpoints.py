"""
slip.api.room_endpoints
~~~~~~~~~~~~~~~~~~~~~~~

派对房间 REST 接口（只读）。

端点:
  - ``GET /health``          → 服务健康状态与活跃房间数
  - ``GET /rooms/{code}``    → 获取房间概要（加入前校验房间码，不含连接 ID）

房间的所有写操作都走 Socket.IO，见 ``slip.api.party_gateway``。
"""
from fastapi import APIRouter, Depends, Request

from slip.api.deps import get_room_registry
from slip.core.config import settings
from slip.core.rate_limit import limiter
from slip.schemas.api_response import ApiResponse
from slip.schemas.party import RoomPreviewData, normalize_code
from slip.services.room_codes import is_valid_code
from slip.services.room_errors import ERROR_MESSAGES, RoomErrorKind
from slip.services.room_registry import RoomRegistry

router: APIRouter = APIRouter()


@router.get("/health", summary="健康检查")
@limiter.limit("10/second")
async def health_check(request: Request, registry: RoomRegistry = Depends(get_room_registry)):
    """验证服务是否正常运行。"""
    return {
        "status": "ok",
        "activeRooms": len(registry),
        "environment": settings.ENVIRONMENT,
    }


@router.get("/rooms/{code}", summary="获取房间概要", response_model=ApiResponse[RoomPreviewData])
@limiter.limit("5/second")
async def room_preview(request: Request, code: str, registry: RoomRegistry = Depends(get_room_registry)):
    """返回指定房间的概要，房间码大小写不敏感。

    完整快照含各玩家的连接 ID，只通过 Socket.IO 发给房间成员。

    Args:
        request: FastAPI Request 对象（用于限流判断）。
        code: 房间码。
    """
    normalized = normalize_code(code)
    room = registry.get_room(normalized) if is_valid_code(normalized, registry.code_length) else None
    if room is None:
        return ApiResponse.not_found(ERROR_MESSAGES[RoomErrorKind.ROOM_NOT_FOUND]).to_response()
    return ApiResponse.ok(data=room.preview())
