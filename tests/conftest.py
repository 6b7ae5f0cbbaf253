"""
测试夹具：内存 MongoDB（mongomock-motor）+ 低轮数 bcrypt + httpx ASGI 客户端

种子数据：两条 Todo（第二条已完成），两个用户（第一个带一个 Token，第二个没有）。
"""

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.config import Settings
from app.db.client import TODOS, USERS, ensure_indexes
from app.main import create_app
from app.security.auth import ACCESS_AUTH, issue_token
from app.security.passwords import BcryptHasher

USER_ONE_ID = ObjectId()
USER_TWO_ID = ObjectId()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        MONGODB_DB="TodoAppTest",
        JWT_SECRET="test-secret-with-enough-bytes-for-hs256",
        BCRYPT_ROUNDS=4,
        ENV="test",
    )


@pytest.fixture
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def users(settings) -> list[dict]:
    """明文密码的种子用户（写库时再哈希）"""
    return [
        {
            "_id": USER_ONE_ID,
            "email": "andrew@example.com",
            "password": "userOnePass",
            "tokens": [{"access": ACCESS_AUTH, "token": issue_token(USER_ONE_ID, settings)}],
        },
        {
            "_id": USER_TWO_ID,
            "email": "jen@example.com",
            "password": "userTwoPass",
            "tokens": [],
        },
    ]


@pytest.fixture
def todos() -> list[dict]:
    return [
        {"_id": ObjectId(), "text": "First test todo", "completed": False, "completedAt": None, "creator": USER_ONE_ID},
        {"_id": ObjectId(), "text": "Second test todo", "completed": True, "completedAt": 333, "creator": USER_TWO_ID},
    ]


@pytest.fixture
async def db(settings, hasher, users, todos):
    client = AsyncMongoMockClient()
    database = client[settings.MONGODB_DB]
    await ensure_indexes(database)

    await database[USERS].insert_many([
        {**u, "password": hasher.hash(u["password"])} for u in users
    ])
    await database[TODOS].insert_many([dict(t) for t in todos])
    yield database


@pytest.fixture
def app(settings, db, hasher):
    return create_app(settings, db=db, password_hasher=hasher)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
