"""
User 请求/响应模型：响应只暴露 _id 与 email，密码哈希和 tokens 永不出现在响应里
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """注册 / 登录请求体"""
    model_config = ConfigDict(extra="ignore")

    email: Any = None
    password: Any = None


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    email: str

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "UserOut":
        return cls(id=str(doc["_id"]), email=doc["email"])
