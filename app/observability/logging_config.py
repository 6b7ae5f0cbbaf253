"""
结构化日志配置：structlog + contextvars 自动注入 trace_id / user_id
- 开发环境：彩色文本输出
- 生产环境：JSON 输出（便于 Loki/ELK 解析）

pymongo / uvicorn 等走标准库 logging 的日志经 ProcessorFormatter 渲染，
和业务日志格式一致、同样带上 trace_id。
"""

import logging
import sys

import structlog

from app.config import Settings

# 第三方库的最低输出级别（pymongo 的 command/heartbeat 日志过于啰嗦）
_NOISY_LOGGERS = {"pymongo": logging.WARNING}


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings) -> None:
    """按配置初始化结构化日志（ENV 决定渲染方式，LOG_LEVEL 决定级别）"""
    level = _resolve_level(settings.LOG_LEVEL)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENV == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, floor in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))
