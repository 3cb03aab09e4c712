"""运行时权限解析。

解析链路：用户 → 角色 → 权限点 → 接口绑定。
1. 用户权限编码集合、角色权限 ID 集合、权限接口绑定集合均采用旁路缓存，按 TTL 过期，不做主动失效。
2. 空结果不写缓存，避免新授权在 TTL 内不可见。
3. 缓存读写失败按未命中处理并回源数据库；数据库失败则中断判断并抛出 `TransientError`。
"""

from collections.abc import Callable
import logging
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authcenter_api.core.cache import (
    CacheLayer,
    api_permission_key,
    role_permission_key,
    user_permission_key,
)
from authcenter_api.core.config import Settings
from authcenter_api.errors import TransientError
from authcenter_api.models.enums import EntityStatus
from authcenter_api.models.permission import ApiResource, Permission, Role, RolePermission, UserRole

logger = logging.getLogger("authcenter_api.permissions")

T = TypeVar("T")


def api_binding(path: str, method: str) -> str:
    """接口绑定键：`path:METHOD`。"""
    return f"{path}:{method.upper()}"


class PermissionResolver:
    """权限解析器，按请求构建。"""

    def __init__(self, db: Session, cache: CacheLayer, settings: Settings):
        self.db = db
        self.cache = cache
        self.settings = settings

    def _query(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as exc:
            logger.warning("permission lookup failed: %s", exc)
            raise TransientError("权限数据查询失败。") from exc

    def _cached_members(self, key: str) -> set[str] | None:
        try:
            members = self.cache.get_members(key)
        except TransientError:
            logger.warning("cache read failed, falling back to database key=%s", key)
            return None
        return members or None

    def _store_members(self, key: str, members: set[str], ttl_seconds: int) -> None:
        if not members:
            return
        try:
            self.cache.add_members(key, members, ttl_seconds)
        except TransientError:
            logger.warning("cache write failed key=%s", key)

    def user_roles(self, user_id: int, app_id: str) -> list[Role]:
        """用户当前有效角色（已禁用或已删除角色不参与判断）。"""
        stmt = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .where(UserRole.app_id == app_id)
            .where(Role.app_id == app_id)
            .where(Role.status == EntityStatus.ENABLED)
            .where(Role.deleted_at.is_(None))
            .order_by(Role.id.asc())
        )
        return self._query(lambda: list(self.db.execute(stmt).scalars().all()))

    def user_role_ids(self, user_id: int, app_id: str) -> list[int]:
        return [role.id for role in self.user_roles(user_id, app_id)]

    def role_permission_ids(self, role_id: int, app_id: str) -> set[int]:
        """角色权限 ID 集合，缓存优先。"""
        key = role_permission_key(role_id, app_id)
        cached = self._cached_members(key)
        if cached is not None:
            return {int(member) for member in cached}

        stmt = (
            select(RolePermission.permission_id)
            .where(RolePermission.role_id == role_id)
            .where(RolePermission.app_id == app_id)
        )
        permission_ids = set(self._query(lambda: self.db.execute(stmt).scalars().all()))
        self._store_members(
            key,
            {str(permission_id) for permission_id in permission_ids},
            self.settings.permission_cache_ttl_seconds,
        )
        return permission_ids

    def _permission_codes(self, permission_ids: set[int], app_id: str) -> set[str]:
        """将权限 ID 解析为编码，跳过不存在、已禁用或已删除的权限。"""
        if not permission_ids:
            return set()
        stmt = (
            select(Permission.code)
            .where(Permission.id.in_(sorted(permission_ids)))
            .where(Permission.app_id == app_id)
            .where(Permission.status == EntityStatus.ENABLED)
            .where(Permission.deleted_at.is_(None))
        )
        return set(self._query(lambda: self.db.execute(stmt).scalars().all()))

    def user_permission_codes(self, user_id: int, app_id: str) -> set[str]:
        """用户权限编码集合，缓存优先，非空结果缓存 12 小时。"""
        key = user_permission_key(user_id, app_id)
        cached = self._cached_members(key)
        if cached is not None:
            return cached

        permission_ids: set[int] = set()
        for role_id in self.user_role_ids(user_id, app_id):
            permission_ids |= self.role_permission_ids(role_id, app_id)
        codes = self._permission_codes(permission_ids, app_id)
        self._store_members(key, codes, self.settings.permission_cache_ttl_seconds)
        return codes

    def check_user_permission(self, user_id: int, app_id: str, code: str) -> bool:
        """判断用户是否持有指定权限编码（精确匹配）。"""
        return code in self.user_permission_codes(user_id, app_id)

    def permission_api_bindings(self, permission_id: int, app_id: str) -> set[str]:
        """权限绑定的接口集合（`path:METHOD`），缓存 24 小时。"""
        key = api_permission_key(permission_id, app_id)
        cached = self._cached_members(key)
        if cached is not None:
            return cached

        stmt = (
            select(ApiResource.path, ApiResource.method)
            .join(Permission, Permission.id == ApiResource.permission_id)
            .where(ApiResource.permission_id == permission_id)
            .where(ApiResource.app_id == app_id)
            .where(ApiResource.status == EntityStatus.ENABLED)
            .where(ApiResource.deleted_at.is_(None))
            .where(Permission.status == EntityStatus.ENABLED)
            .where(Permission.deleted_at.is_(None))
        )
        rows = self._query(lambda: self.db.execute(stmt).all())
        bindings = {api_binding(path, method) for path, method in rows}
        self._store_members(key, bindings, self.settings.api_permission_cache_ttl_seconds)
        return bindings

    def check_api_permission(self, user_id: int, app_id: str, path: str, method: str) -> bool:
        """判断用户是否可调用指定接口，命中即返回。"""
        target = api_binding(path, method)
        for role_id in self.user_role_ids(user_id, app_id):
            for permission_id in sorted(self.role_permission_ids(role_id, app_id)):
                if target in self.permission_api_bindings(permission_id, app_id):
                    return True
        return False
