"""
健康检查接口：探活 + MongoDB 连接状态
"""

import structlog
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.db.client import get_db

router = APIRouter(tags=["健康检查"])
log = structlog.get_logger()


@router.get("/health")
async def health_check(db: AsyncIOMotorDatabase = Depends(get_db)):
    """健康检查：校验 MongoDB 连接，失败时标记 degraded 而不是报错"""
    status = {"status": "ok", "mongodb": "ok"}

    try:
        await db.command("ping")
    except PyMongoError as e:
        status["mongodb"] = f"error: {e}"
        status["status"] = "degraded"
        log.error("MongoDB 健康检查失败", error=str(e))

    return status
