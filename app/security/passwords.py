"""
密码哈希：可插拔的 PasswordHasher，默认 bcrypt

路由只依赖 hash / verify 两个方法，替换算法时实现同样的接口即可。
"""

from typing import Protocol

import bcrypt
from fastapi import Request

# bcrypt 只使用前 72 字节，超出部分显式截断（新版 bcrypt 对超长输入直接报错）
_BCRYPT_MAX_BYTES = 72


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, hashed: str) -> bool: ...


class BcryptHasher:
    """bcrypt 实现，rounds 越大越慢"""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode()[:_BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        """生成密码哈希"""
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, hashed: str) -> bool:
        """校验密码，哈希格式损坏时视为不匹配"""
        try:
            return bcrypt.checkpw(self._encode(password), hashed.encode())
        except ValueError:
            return False


async def get_password_hasher(request: Request) -> PasswordHasher:
    """FastAPI 依赖注入：获取当前应用的密码哈希器"""
    return request.app.state.password_hasher
