"""
API 错误类型：每种错误固定状态码 + 固定响应体形状

路由里直接 raise，统一由 api_error_handler 渲染：
- ValidationFailed   400  字段级校验错误
- DuplicateKey       400  唯一约束冲突（带原生错误码 11000）
- QueryFailed        400  按 id 查询/修改时存储层报错
- InvalidCredentials 400  登录失败，空响应体
- NotFound           404  id 非法或文档不存在，空响应体（刻意不区分两种原因）
- Unauthorized       401  缺少/无效 Token，响应体为 {}
- InternalError      500  列表等读路径上的意外存储错误
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from app.validator.schemas import FieldError, ValidationResult

log = structlog.get_logger()


class ApiError(Exception):
    """所有可预期业务错误的基类"""

    status_code: int = 500

    def body(self) -> dict[str, Any] | None:
        """响应体；None 表示空响应体"""
        return None

    def to_response(self) -> Response:
        body = self.body()
        if body is None:
            return Response(status_code=self.status_code)
        return JSONResponse(status_code=self.status_code, content=body)


class ValidationFailed(ApiError):
    status_code = 400

    def __init__(self, entity: str, errors: list[FieldError]):
        super().__init__(f"{entity} validation failed")
        self.entity = entity
        self.errors = errors

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationFailed":
        return cls(result.entity, result.errors)

    def body(self) -> dict[str, Any]:
        return {
            "name": "ValidationError",
            "message": f"{self.entity} validation failed",
            "errors": {e.path: e.model_dump() for e in self.errors},
        }


class DuplicateKey(ApiError):
    status_code = 400

    def __init__(self, code: int, message: str, key_value: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.key_value = key_value

    def body(self) -> dict[str, Any]:
        return {
            "name": "DuplicateKeyError",
            "code": self.code,
            "message": self.message,
            "keyValue": self.key_value,
        }


class QueryFailed(ApiError):
    status_code = 400

    def body(self) -> dict[str, Any]:
        return {"name": "QueryError", "message": str(self)}


class InvalidCredentials(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404


class Unauthorized(ApiError):
    status_code = 401

    def body(self) -> dict[str, Any]:
        return {}


class InternalError(ApiError):
    status_code = 500

    def body(self) -> dict[str, Any]:
        return {"name": "InternalError", "message": str(self) or "Internal Server Error"}


# ── 请求体解析失败（非 JSON / 字段类型错误）也按校验错误返回 400 ──

def _request_validation_to_field_errors(exc: RequestValidationError) -> list[FieldError]:
    errors: dict[str, FieldError] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        path = ".".join(loc) or "body"
        if path in errors:
            continue
        errors[path] = FieldError(
            kind=err.get("type", "invalid"),
            path=path,
            message=err.get("msg", "Invalid value"),
            value=err.get("input") if isinstance(err.get("input"), (str, int, float, bool)) else None,
        )
    return list(errors.values())


async def api_error_handler(request: Request, exc: ApiError) -> Response:
    if exc.status_code >= 500:
        log.error("请求处理失败", path=request.url.path, error=str(exc), kind=type(exc).__name__)
    else:
        log.info("请求被拒绝", path=request.url.path, status_code=exc.status_code, kind=type(exc).__name__)
    return exc.to_response()


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    resource = request.url.path.strip("/").split("/", 1)[0]
    entity = _ENTITY_BY_RESOURCE.get(resource, "Request")
    return await api_error_handler(request, ValidationFailed(entity, _request_validation_to_field_errors(exc)))


# 路径首段 → 实体名，用于生成 "<Entity> validation failed"
_ENTITY_BY_RESOURCE = {"todos": "Todo", "users": "User"}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
