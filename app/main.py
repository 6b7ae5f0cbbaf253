"""
FastAPI 应用主入口
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# 将项目根目录添加到 python path，以便直接运行 main.py 时能找到 app 模块
sys.path.append(str(Path(__file__).resolve().parent.parent))

import structlog
from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorDatabase
from prometheus_client import make_asgi_app

from app.config import Settings, get_settings
from app.db.client import create_client, ensure_indexes
from app.errors import register_error_handlers
from app.observability.logging_config import setup_logging
from app.observability.metrics_middleware import MetricsMiddleware
from app.observability.request_logger import RequestLoggerMiddleware
from app.security.passwords import BcryptHasher, PasswordHasher

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """应用生命周期：启动时连接 MongoDB 并建索引，关闭时释放连接"""
    settings: Settings = application.state.settings
    log.info("应用启动", env=settings.ENV, app=settings.APP_NAME)

    client = None
    if application.state.db is None:
        client = create_client(settings)
        # ── Warm-up：Fail Fast，MongoDB 不可用时拒绝启动 ──
        await client.admin.command("ping")
        application.state.db = client[settings.MONGODB_DB]
        log.info("MongoDB 连接正常", db=settings.MONGODB_DB)

    await ensure_indexes(application.state.db)

    yield

    if client is not None:
        client.close()
    log.info("应用关闭，资源已释放")


def create_app(
    settings: Settings | None = None,
    *,
    db: AsyncIOMotorDatabase | None = None,
    password_hasher: PasswordHasher | None = None,
) -> FastAPI:
    """
    构建应用实例

    db / password_hasher 可由调用方注入（测试用内存库和低轮数哈希），
    未注入时 db 在 lifespan 中按配置连接。
    """
    settings = settings or get_settings()

    application = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.db = db
    application.state.password_hasher = password_hasher or BcryptHasher(rounds=settings.BCRYPT_ROUNDS)

    # ── 中间件（执行顺序：从下往上注册，从上往下执行） ──
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestLoggerMiddleware)

    register_error_handlers(application)

    # ── Prometheus 指标端点 ──
    application.mount("/metrics", make_asgi_app())

    # ── 路由注册 ──
    from app.api.health import router as health_router
    from app.api.todos import router as todos_router
    from app.security.login import router as users_router

    application.include_router(health_router)
    application.include_router(todos_router)
    application.include_router(users_router)

    return application


_settings = get_settings()

# 初始化日志（在 import 时就生效）
setup_logging(_settings)

app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=_settings.APP_PORT, reload=_settings.ENV != "production")
