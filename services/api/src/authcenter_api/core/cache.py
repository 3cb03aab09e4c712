"""Redis 缓存访问层。

缓存只保存可重算的派生数据（权限集合、验证码）与令牌黑名单。
所有 `RedisError` 统一转换为 `TransientError`，由调用方决定降级还是中断。
"""

import logging

from redis import Redis
from redis.exceptions import RedisError

from authcenter_api.core.config import Settings
from authcenter_api.errors import TransientError

logger = logging.getLogger("authcenter_api.cache")

# 缓存键命名空间，跨语言客户端共享，不可随意修改。
TOKEN_BLACKLIST_PREFIX = "token:blacklist:"
USER_PERMISSION_PREFIX = "user:permission:"
ROLE_PERMISSION_PREFIX = "role:permission:"
API_PERMISSION_PREFIX = "api:permission:"
LOGIN_CODE_PREFIX = "otp:"


def blacklist_key(jti: str) -> str:
    return f"{TOKEN_BLACKLIST_PREFIX}{jti}"


def user_permission_key(user_id: int, app_id: str) -> str:
    return f"{USER_PERMISSION_PREFIX}{user_id}:{app_id}"


def role_permission_key(role_id: int, app_id: str) -> str:
    return f"{ROLE_PERMISSION_PREFIX}{role_id}:{app_id}"


def api_permission_key(permission_id: int, app_id: str) -> str:
    return f"{API_PERMISSION_PREFIX}{permission_id}:{app_id}"


def login_code_key(app_id: str, phone: str) -> str:
    return f"{LOGIN_CODE_PREFIX}{app_id}:{phone}"


def create_redis_client(settings: Settings) -> Redis:
    """按配置创建带超时的同步 Redis 客户端。"""
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_timeout_seconds,
        socket_connect_timeout=settings.redis_timeout_seconds,
    )


class CacheLayer:
    """面向业务的 Redis 薄封装。"""

    def __init__(self, client: Redis):
        self.client = client

    def get_members(self, key: str) -> set[str]:
        """读取集合成员，键不存在时返回空集合。"""
        try:
            return set(self.client.smembers(key))
        except RedisError as exc:
            raise TransientError("缓存读取失败。", details={"key": key}) from exc

    def add_members(self, key: str, members: set[str], ttl_seconds: int) -> None:
        """写入集合成员并设置过期时间。"""
        if not members:
            return
        try:
            pipe = self.client.pipeline()
            pipe.sadd(key, *sorted(members))
            pipe.expire(key, ttl_seconds)
            pipe.execute()
        except RedisError as exc:
            raise TransientError("缓存写入失败。", details={"key": key}) from exc

    def set_value(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.setex(key, max(1, int(ttl_seconds)), value)
        except RedisError as exc:
            raise TransientError("缓存写入失败。", details={"key": key}) from exc

    def get_value(self, key: str) -> str | None:
        try:
            return self.client.get(key)
        except RedisError as exc:
            raise TransientError("缓存读取失败。", details={"key": key}) from exc

    def exists(self, key: str) -> bool:
        try:
            return bool(self.client.exists(key))
        except RedisError as exc:
            raise TransientError("缓存读取失败。", details={"key": key}) from exc

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except RedisError as exc:
            raise TransientError("缓存删除失败。", details={"key": key}) from exc

    def ping(self) -> bool:
        """就绪探针使用，失败时抛出 `TransientError`。"""
        try:
            return bool(self.client.ping())
        except RedisError as exc:
            raise TransientError("缓存服务不可用。") from exc
