"""
Prometheus 指标定义

所有指标统一在此文件定义，中间件和业务代码按需引用。
"""

from prometheus_client import Counter, Histogram

# ── 请求级指标 ──

REQUEST_TOTAL = Counter(
    "todo_request_total",
    "HTTP 请求总数",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "todo_request_duration_ms",
    "HTTP 请求耗时（毫秒）",
    ["method", "endpoint"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

# ── 认证事件 ──

AUTH_EVENT_TOTAL = Counter(
    "todo_auth_event_total",
    "认证事件总数",
    ["event", "outcome"],  # event: register/login/logout/authenticate, outcome: success/failure
)

# ── 存储错误 ──

STORE_ERROR_TOTAL = Counter(
    "todo_store_error_total",
    "MongoDB 操作失败次数",
    ["collection", "operation"],
)
