"""
管理脚本：按邮箱直接删除用户（连同全部 Token），HTTP 接口不提供此能力

运行方式：
    python scripts/purge_user.py --email someone@example.com
    python scripts/purge_user.py --email someone@example.com --with-todos
"""

import argparse
import asyncio
import sys
from pathlib import Path

# 确保项目根目录在 sys.path 中
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import structlog

from app.config import get_settings
from app.db.client import TODOS, create_client
from app.observability.logging_config import setup_logging
from app.users.store import UserStore

log = structlog.get_logger()


async def purge_user(email: str, with_todos: bool) -> int:
    settings = get_settings()
    client = create_client(settings)
    try:
        db = client[settings.MONGODB_DB]
        store = UserStore(db)

        user = await store.find_by_email(email)
        if user is None:
            log.warning("用户不存在", email=email)
            return 1

        await store.delete(user["_id"])
        if with_todos:
            result = await db[TODOS].delete_many({"creator": user["_id"]})
            log.info("已删除用户的 Todo", count=result.deleted_count)
        log.info("用户已清除", email=email, tokens=len(user.get("tokens", [])))
        return 0
    finally:
        client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="按邮箱删除用户")
    parser.add_argument("--email", required=True)
    parser.add_argument("--with-todos", action="store_true", help="同时删除该用户创建的 Todo")
    args = parser.parse_args()

    setup_logging(get_settings())
    sys.exit(asyncio.run(purge_user(args.email, args.with_todos)))


if __name__ == "__main__":
    main()
