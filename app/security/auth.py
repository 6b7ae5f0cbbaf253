"""
Token 鉴权模块：Token 签发 / 解析 / 按用户文档中保存的 Token 匹配

Token 是 HS256 签名的 JWT，载荷带用户 id 与随机 jti，保证每次登录都不同。
签名有效还不够：Token 必须仍在用户文档的 tokens 列表里（注销即移除）。
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
import structlog
from bson import ObjectId
from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.config import Settings, get_app_settings
from app.db.client import get_db
from app.errors import Unauthorized
from app.observability.context import bind_user
from app.observability.metrics import AUTH_EVENT_TOTAL
from app.users.store import UserStore

log = structlog.get_logger()

ACCESS_AUTH = "auth"


@dataclass
class AuthenticatedUser:
    """鉴权后的用户上下文，贯穿整个请求生命周期"""

    id: ObjectId
    email: str
    token: str


def issue_token(user_id: ObjectId, settings: Settings, *, access: str = ACCESS_AUTH) -> str:
    """签发认证 Token"""
    now = datetime.now(timezone.utc)
    payload = {
        "_id": str(user_id),
        "access": access,
        "jti": uuid.uuid4().hex,
        "iat": now,
    }
    if settings.AUTH_TOKEN_EXPIRE_MINUTES:
        payload["exp"] = now + timedelta(minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> ObjectId | None:
    """校验签名并取出用户 id；签名错误、过期、载荷不完整都返回 None"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    raw_id = payload.get("_id")
    if payload.get("access") != ACCESS_AUTH or not isinstance(raw_id, str) or not ObjectId.is_valid(raw_id):
        return None
    return ObjectId(raw_id)


async def resolve_token(token: str | None, db: AsyncIOMotorDatabase, settings: Settings) -> AuthenticatedUser:
    """把请求头里的 Token 解析成用户，任何一步失败都抛 Unauthorized"""
    if not token:
        raise Unauthorized("missing token")

    user_id = decode_token(token, settings)
    if user_id is None:
        AUTH_EVENT_TOTAL.labels(event="authenticate", outcome="failure").inc()
        raise Unauthorized("invalid token")

    user = await UserStore(db).find_by_token(user_id, token, access=ACCESS_AUTH)
    if user is None:
        AUTH_EVENT_TOTAL.labels(event="authenticate", outcome="failure").inc()
        log.info("Token 未匹配到用户", user_id=str(user_id))
        raise Unauthorized("unknown token")

    return AuthenticatedUser(id=user["_id"], email=user["email"], token=token)


def _mark_user(request: Request, user: AuthenticatedUser) -> None:
    request.state.user_id = str(user.id)
    bind_user(str(user.id))


async def get_current_user(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuthenticatedUser:
    """FastAPI 依赖注入：必须携带有效 Token"""
    user = await resolve_token(request.headers.get(settings.AUTH_HEADER), db, settings)
    _mark_user(request, user)
    return user


async def get_optional_user(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuthenticatedUser | None:
    """FastAPI 依赖注入：未携带 Token 时返回 None，携带了就必须有效"""
    token = request.headers.get(settings.AUTH_HEADER)
    if token is None:
        return None
    user = await resolve_token(token, db, settings)
    _mark_user(request, user)
    return user
