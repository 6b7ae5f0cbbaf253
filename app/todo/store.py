"""
Todo MongoDB 存储层

只做文档读写，不吞异常：PyMongoError 原样抛给路由，由路由按端点映射成 400/500。
"""

import time
from typing import Any

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.db.client import TODOS

log = structlog.get_logger()

# 完成态更新遇到并发状态切换时的最大重试次数
_COMPLETE_ATTEMPTS = 3


def now_ms() -> int:
    """当前时间（epoch 毫秒）"""
    return int(time.time() * 1000)


def build_update(fields: dict[str, Any], timestamp_ms: int | None) -> dict[str, Any]:
    """
    由 PATCH 字段生成 $set 内容

    completed 为 True 时写入 completedAt（timestamp_ms 为 None 表示保留已有的 completedAt）；
    为 False 或未提供时统一置为未完成并清空 completedAt，
    保证 completedAt 非空当且仅当 completed 为 True。
    """
    update: dict[str, Any] = {}
    if "text" in fields:
        update["text"] = fields["text"]

    if fields.get("completed") is True:
        update["completed"] = True
        if timestamp_ms is not None:
            update["completedAt"] = timestamp_ms
    else:
        update["completed"] = False
        update["completedAt"] = None
    return update


class TodoStore:
    """todos 集合的 CRUD"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[TODOS]

    async def create(self, text: str, creator: ObjectId | None = None) -> dict[str, Any]:
        doc = {
            "text": text,
            "completed": False,
            "completedAt": None,
            "creator": creator,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        log.info("Todo 已创建", todo_id=str(result.inserted_id))
        return doc

    async def list_all(self) -> list[dict[str, Any]]:
        return await self.collection.find().to_list(length=None)

    async def get(self, todo_id: ObjectId) -> dict[str, Any] | None:
        return await self.collection.find_one({"_id": todo_id})

    async def delete(self, todo_id: ObjectId) -> dict[str, Any] | None:
        doc = await self.collection.find_one_and_delete({"_id": todo_id})
        if doc is not None:
            log.info("Todo 已删除", todo_id=str(todo_id))
        return doc

    async def update(self, todo_id: ObjectId, fields: dict[str, Any]) -> dict[str, Any] | None:
        """
        按 PATCH 语义更新，返回更新后的文档；不存在时返回 None

        completed=True 只在 未完成 → 完成 时写入 completedAt，已完成的文档保留原时间戳。
        两种情况各用一个带状态条件的 find_one_and_update，单文档原子；
        两个条件都没命中说明期间被并发改了状态，重新判断一次。
        """
        if fields.get("completed") is True:
            doc = None
            for _ in range(_COMPLETE_ATTEMPTS):
                doc = await self._update_where(
                    {"_id": todo_id, "completed": {"$ne": True}}, build_update(fields, now_ms()),
                )
                if doc is None:
                    doc = await self._update_where(
                        {"_id": todo_id, "completed": True}, build_update(fields, None),
                    )
                if doc is not None or await self.get(todo_id) is None:
                    break
        else:
            doc = await self._update_where({"_id": todo_id}, build_update(fields, None))

        if doc is not None:
            log.info("Todo 已更新", todo_id=str(todo_id), completed=doc.get("completed"))
        return doc

    async def _update_where(self, query: dict[str, Any], update: dict[str, Any]) -> dict[str, Any] | None:
        return await self.collection.find_one_and_update(
            query,
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
