"""
请求上下文：把 trace_id / user_id 绑定到 structlog contextvars，后续日志自动携带
"""

import uuid

import structlog


def start_request_context(trace_id: str | None = None) -> str:
    """请求入口调用：清空上一个请求残留的上下文并绑定 trace_id，返回最终使用的 trace_id"""
    trace_id = trace_id or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)
    return trace_id


def bind_user(user_id: str) -> None:
    """鉴权通过后调用"""
    structlog.contextvars.bind_contextvars(user_id=user_id)
