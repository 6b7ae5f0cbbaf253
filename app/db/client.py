"""
MongoDB 连接：AsyncIOMotorClient 创建 + 索引初始化 + FastAPI 依赖注入

客户端在 lifespan 中创建并挂到 app.state 上，路由通过 get_db 拿到数据库句柄，
不使用模块级全局连接。
"""

import structlog
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from app.config import Settings

log = structlog.get_logger()

# ── 集合名 ──
TODOS = "todos"
USERS = "users"


def create_client(settings: Settings) -> AsyncIOMotorClient:
    """按配置创建 Motor 客户端（惰性连接，首个操作时才真正建连）"""
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        tz_aware=True,
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """创建业务依赖的索引，重复调用是幂等的"""
    # email 唯一约束由存储层保证，冲突时抛 DuplicateKeyError(11000)
    await db[USERS].create_index([("email", ASCENDING)], unique=True, name="uniq_email")
    await db[USERS].create_index([("tokens.token", ASCENDING)], name="idx_tokens_token")
    await db[TODOS].create_index([("creator", ASCENDING)], name="idx_creator")
    log.info("MongoDB 索引已就绪", db=db.name)


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """FastAPI 依赖注入：获取当前应用的数据库句柄"""
    return request.app.state.db
