"""
用户接口：注册 / 登录 / 当前用户 / 注销

认证 Token 通过 x-auth 响应头下发，客户端后续在同名请求头里带回。
"""

import structlog
from bson import ObjectId
from fastapi import APIRouter, Depends, Response
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.config import Settings, get_app_settings
from app.db.client import get_db
from app.errors import DuplicateKey, InvalidCredentials, QueryFailed, ValidationFailed
from app.observability.metrics import AUTH_EVENT_TOTAL, STORE_ERROR_TOTAL
from app.security.auth import ACCESS_AUTH, AuthenticatedUser, get_current_user, issue_token
from app.security.passwords import PasswordHasher, get_password_hasher
from app.users.schemas import Credentials, UserOut
from app.users.store import UserStore
from app.validator import validate_user

router = APIRouter(prefix="/users", tags=["用户"])
log = structlog.get_logger()


def get_user_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> UserStore:
    return UserStore(db)


def _duplicate_key(exc: DuplicateKeyError) -> DuplicateKey:
    details = exc.details or {}
    return DuplicateKey(
        code=exc.code or 11000,
        message=details.get("errmsg", str(exc)),
        key_value=details.get("keyValue"),
    )


@router.post("", response_model=UserOut)
async def register(
    response: Response,
    body: Credentials | None = None,
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
):
    """注册：校验 → 签发 Token → 哈希密码 → 用户与首个 Token 一次入库"""
    result = validate_user(
        body.model_dump() if body else {},
        password_min_length=settings.PASSWORD_MIN_LENGTH,
    )
    if not result.ok:
        AUTH_EVENT_TOTAL.labels(event="register", outcome="failure").inc()
        raise ValidationFailed.from_result(result)

    # id 先在本地生成，Token 与用户文档一起落库
    user_id = ObjectId()
    token = issue_token(user_id, settings)

    try:
        user = await store.create(
            result.data["email"],
            hasher.hash(result.data["password"]),
            user_id=user_id,
            tokens=[{"access": ACCESS_AUTH, "token": token}],
        )
    except DuplicateKeyError as e:
        AUTH_EVENT_TOTAL.labels(event="register", outcome="failure").inc()
        log.info("注册失败，邮箱已存在", email=result.data["email"])
        raise _duplicate_key(e) from e
    except PyMongoError as e:
        STORE_ERROR_TOTAL.labels(collection="users", operation="register").inc()
        raise QueryFailed(str(e)) from e

    AUTH_EVENT_TOTAL.labels(event="register", outcome="success").inc()
    log.info("用户注册成功", user_id=str(user["_id"]))
    response.headers[settings.AUTH_HEADER] = token
    return UserOut.from_document(user)


@router.post("/login", response_model=UserOut)
async def login(
    response: Response,
    body: Credentials | None = None,
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
):
    """登录：校验密码，追加一个新 Token"""
    email = body.email if body else None
    password = body.password if body else None
    if not isinstance(email, str) or not isinstance(password, str):
        AUTH_EVENT_TOTAL.labels(event="login", outcome="failure").inc()
        raise InvalidCredentials()

    try:
        user = await store.find_by_email(email.strip())
    except PyMongoError as e:
        STORE_ERROR_TOTAL.labels(collection="users", operation="login").inc()
        raise QueryFailed(str(e)) from e

    if user is None or not hasher.verify(password, user["password"]):
        AUTH_EVENT_TOTAL.labels(event="login", outcome="failure").inc()
        log.info("登录失败", email=email)
        raise InvalidCredentials()

    token = issue_token(user["_id"], settings)
    try:
        await store.add_token(user["_id"], token, access=ACCESS_AUTH)
    except PyMongoError as e:
        STORE_ERROR_TOTAL.labels(collection="users", operation="login").inc()
        raise QueryFailed(str(e)) from e

    AUTH_EVENT_TOTAL.labels(event="login", outcome="success").inc()
    log.info("用户登录成功", user_id=str(user["_id"]))
    response.headers[settings.AUTH_HEADER] = token
    return UserOut.from_document(user)


@router.get("/me", response_model=UserOut)
async def me(user: AuthenticatedUser = Depends(get_current_user)):
    return UserOut(id=str(user.id), email=user.email)


@router.delete("/me/token")
async def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """注销：只移除本次请求携带的那个 Token"""
    try:
        await store.remove_token(user.id, user.token)
    except PyMongoError as e:
        STORE_ERROR_TOTAL.labels(collection="users", operation="logout").inc()
        raise QueryFailed(str(e)) from e

    AUTH_EVENT_TOTAL.labels(event="logout", outcome="success").inc()
    log.info("用户注销")
    return Response(status_code=200)
