"""
全局配置模块：通过 pydantic-settings 读取 .env 环境变量
"""

from functools import lru_cache
from pathlib import Path

from fastapi import Request
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用全局配置，从 .env 文件加载"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── MongoDB ──
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "TodoApp"
    MONGODB_TIMEOUT_MS: int = 5000  # 服务端选择超时，连不上时快速失败

    # ── 认证 Token ──
    JWT_SECRET: str = "dev-secret-change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN_EXPIRE_MINUTES: int | None = None  # None 表示不过期，仅靠注销吊销
    AUTH_HEADER: str = "x-auth"

    # ── 密码 ──
    PASSWORD_MIN_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 10

    # ── 应用 ──
    ENV: str = "development"  # development | production
    APP_NAME: str = "todo-api"
    APP_PORT: int = 3000
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR

    @model_validator(mode="after")
    def _check_production_secret(self) -> "Settings":
        """生产环境强制要求配置安全的 JWT_SECRET"""
        if self.ENV == "production" and (
            self.JWT_SECRET.startswith("dev-") or len(self.JWT_SECRET) < 32
        ):
            raise ValueError(
                "生产环境 JWT_SECRET 不能使用默认值，"
                "且长度必须 >= 32 位。请在 .env 中配置安全的密钥。"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """单例获取配置（带缓存）"""
    return Settings()


async def get_app_settings(request: Request) -> Settings:
    """FastAPI 依赖注入：获取当前应用实例绑定的配置（测试可注入独立配置）"""
    return request.app.state.settings
