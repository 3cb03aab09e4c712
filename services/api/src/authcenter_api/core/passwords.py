"""口令哈希工具（argon2id）。"""

import secrets

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from authcenter_api.core.config import Settings


class PasswordManager:
    """按配置参数生成与校验 argon2id 口令哈希。

    实例随 `AppContext` 构建，哈希参数来自注入的配置而非进程环境。
    """

    def __init__(self, settings: Settings):
        self._hasher = PasswordHasher(
            time_cost=settings.auth_password_time_cost,
            memory_cost=settings.auth_password_memory_cost,
            parallelism=settings.auth_password_parallelism,
            type=Type.ID,
        )
        self._dummy_hash: str | None = None

    @property
    def parameters(self) -> tuple[int, int, int]:
        """当前哈希参数 (time_cost, memory_cost, parallelism)。"""
        return self._hasher.time_cost, self._hasher.memory_cost, self._hasher.parallelism

    def hash(self, password: str) -> str:
        """生成带随机盐的 argon2id 口令哈希。"""
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """校验口令是否匹配，哈希格式非法时按不匹配处理。"""
        if not password_hash:
            return False
        try:
            return self._hasher.verify(password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHash):
            return False

    def verify_dummy(self, password: str) -> None:
        """账号不存在时仍执行一次校验，使耗时与口令错误一致。"""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_urlsafe(16))
        self.verify(password, self._dummy_hash)
