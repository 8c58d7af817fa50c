"""
slip.schemas.api_response
~~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口的统一应答体 ``{code, data, msg}``。

``code`` 与 HTTP 状态码保持一致：成功为 200，失败时 ``to_response()``
直接用 ``code`` 作为响应状态码，前端无需区分两套错误码。
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """统一 JSON 应答体。

    .. code-block:: json

        {"code": 200, "data": {...}, "msg": "success"}
    """

    code: int = Field(default=200, description="状态码，与 HTTP 状态码一致")
    data: T = Field(..., description="业务数据")
    msg: str = Field(default="success", description="状态消息")

    @property
    def is_ok(self) -> bool:
        return self.code < 400

    @classmethod
    def ok(cls, data: T, msg: str = "success") -> ApiResponse[T]:
        return cls(code=200, data=data, msg=msg)

    @classmethod
    def fail(cls, msg: str, code: int = 500) -> ApiResponse[Any]:
        """失败响应，``data`` 恒为 ``None``。"""
        return cls(code=code, data=None, msg=msg)

    @classmethod
    def not_found(cls, msg: str) -> ApiResponse[Any]:
        return cls.fail(msg=msg, code=404)

    def to_response(self) -> JSONResponse:
        """包装为 ``JSONResponse``，状态码取自 ``code``。"""
        return JSONResponse(status_code=self.code, content=self.model_dump(by_alias=True))
