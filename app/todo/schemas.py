"""
Todo 请求/响应模型

请求模型只负责把 JSON 解析出来，业务规则（非空、去空白）交给 validate_todo；
响应模型把 MongoDB 文档转换成对外 JSON（ObjectId → hex 字符串）。
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def to_epoch_ms(value: Any) -> int | None:
    """completedAt 统一成 epoch 毫秒整数；其他写入方可能存了 float 或 BSON 日期"""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return int(value)


class TodoCreateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Any = None


class TodoUpdateRequest(BaseModel):
    """PATCH 只认 text / completed，其余字段丢弃"""
    model_config = ConfigDict(extra="ignore")

    text: Any = None
    completed: Any = None


class TodoOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    text: str
    completed: bool = False
    completed_at: int | None = Field(default=None, alias="completedAt")
    creator: str | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "TodoOut":
        creator = doc.get("creator")
        return cls(
            id=str(doc["_id"]),
            text=doc["text"],
            completed=doc.get("completed", False),
            completed_at=to_epoch_ms(doc.get("completedAt")),
            creator=str(creator) if creator is not None else None,
        )


class TodoEnvelope(BaseModel):
    todo: TodoOut


class TodoListResponse(BaseModel):
    todos: list[TodoOut]
