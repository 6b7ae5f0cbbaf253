"""
User MongoDB 存储层

tokens 以 {access, token} 子文档数组保存在用户文档内：
登录 $push 追加，注销 $pull 移除（重复移除是幂等的）。
"""

from typing import Any

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.client import USERS

log = structlog.get_logger()


class UserStore:
    """users 集合的读写"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[USERS]

    async def create(
        self,
        email: str,
        password_hash: str,
        *,
        user_id: ObjectId | None = None,
        tokens: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """
        插入新用户；email 冲突时抛 pymongo DuplicateKeyError

        注册时首个 Token 随文档一次 insert_one 写入，不会留下没有 Token 的半成品用户。
        """
        doc = {
            "_id": user_id or ObjectId(),
            "email": email,
            "password": password_hash,
            "tokens": tokens or [],
        }
        await self.collection.insert_one(doc)
        return doc

    async def find_by_email(self, email: str) -> dict[str, Any] | None:
        return await self.collection.find_one({"email": email})

    async def find_by_token(self, user_id: ObjectId, token: str, *, access: str) -> dict[str, Any] | None:
        return await self.collection.find_one({
            "_id": user_id,
            "tokens.token": token,
            "tokens.access": access,
        })

    async def add_token(self, user_id: ObjectId, token: str, *, access: str) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$push": {"tokens": {"access": access, "token": token}}},
        )

    async def remove_token(self, user_id: ObjectId, token: str) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$pull": {"tokens": {"token": token}}},
        )

    async def delete(self, user_id: ObjectId) -> dict[str, Any] | None:
        """管理员直接删除用户（连同全部 tokens），不经由 HTTP 接口"""
        doc = await self.collection.find_one_and_delete({"_id": user_id})
        if doc is not None:
            log.info("用户已删除", user_id=str(user_id))
        return doc
