"""应用范围内资源管理：角色、权限、接口与用户。

调用前必须已通过管理员授权确定目标 `app_id`，本模块所有查询均按 `app_id` 过滤。
权限相关缓存按 TTL 自然过期，此处变更不主动失效缓存。
"""

from datetime import datetime, timezone
import logging
from typing import Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from authcenter_api.core.passwords import PasswordManager
from authcenter_api.db.session import commit_unique
from authcenter_api.errors import BadRequestError, ConflictError, NotFoundError
from authcenter_api.models.enums import EntityStatus
from authcenter_api.models.permission import ApiResource, Permission, Role, RolePermission, UserRole
from authcenter_api.models.tenant import User
from authcenter_api.services.directory import ensure_user_unique
from authcenter_api.utils.pagination import paginate

logger = logging.getLogger("authcenter_api.resources")

ModelT = TypeVar("ModelT", Role, Permission, ApiResource, User)

_ROLE_FIELDS = {"name", "code", "description", "status"}
_PERMISSION_FIELDS = {"name", "code", "resource", "action", "description", "status"}
_API_FIELDS = {"path", "method", "description", "permission_id", "status"}
_USER_FIELDS = {"email", "phone", "password", "status", "is_super_admin"}
_NULLABLE_FIELDS = {"description", "email", "phone"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_scoped(db: Session, model: type[ModelT], *, app_id: str, item_id: int, label: str) -> ModelT:
    stmt = (
        select(model)
        .where(model.id == item_id)
        .where(model.app_id == app_id)
        .where(model.deleted_at.is_(None))
    )
    item = db.execute(stmt).scalar_one_or_none()
    if item is None:
        raise NotFoundError(f"{label}不存在。", details={"id": item_id})
    return item


def _list_scoped(
    db: Session,
    model: type[ModelT],
    *,
    app_id: str,
    page: int,
    page_size: int,
    status: str | None = None,
) -> tuple[list[ModelT], int]:
    stmt = select(model).where(model.app_id == app_id).where(model.deleted_at.is_(None))
    if status:
        stmt = stmt.where(model.status == status)
    return paginate(db, stmt.order_by(model.id.asc()), page=page, page_size=page_size)


def _apply_changes(item: Any, changes: dict[str, Any], allowed: set[str]) -> None:
    for field_name, value in changes.items():
        if field_name not in allowed:
            continue
        if value is None and field_name not in _NULLABLE_FIELDS:
            raise BadRequestError(f"{field_name} 不能为空。", details={"field": field_name})
        setattr(item, field_name, value)


def _soft_delete(db: Session, item: Any) -> None:
    item.deleted_at = _now()
    item.status = EntityStatus.DISABLED
    db.commit()


def _existing_ids(db: Session, model: type[ModelT], *, app_id: str, ids: set[int]) -> set[int]:
    if not ids:
        return set()
    stmt = (
        select(model.id)
        .where(model.id.in_(sorted(ids)))
        .where(model.app_id == app_id)
        .where(model.deleted_at.is_(None))
    )
    return set(db.execute(stmt).scalars().all())


# ---- 角色 ----


def _ensure_role_code_unique(db: Session, *, app_id: str, code: str, exclude_id: int | None = None) -> None:
    stmt = select(Role.id).where(Role.app_id == app_id).where(Role.code == code).where(Role.deleted_at.is_(None))
    if exclude_id is not None:
        stmt = stmt.where(Role.id != exclude_id)
    if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
        raise ConflictError("角色编码已存在。", details={"field": "code"})


def list_roles(db: Session, *, app_id: str, page: int = 1, page_size: int = 20, status: str | None = None):
    return _list_scoped(db, Role, app_id=app_id, page=page, page_size=page_size, status=status)


def get_role(db: Session, *, app_id: str, role_id: int) -> Role:
    return _get_scoped(db, Role, app_id=app_id, item_id=role_id, label="角色")


def create_role(db: Session, *, app_id: str, name: str, code: str, description: str | None = None) -> Role:
    _ensure_role_code_unique(db, app_id=app_id, code=code)
    role = Role(app_id=app_id, name=name, code=code, description=description, status=EntityStatus.ENABLED)
    db.add(role)
    commit_unique(db, message="角色编码已存在。", details={"field": "code"})
    db.refresh(role)
    return role


def update_role(db: Session, *, app_id: str, role_id: int, changes: dict[str, Any]) -> Role:
    role = get_role(db, app_id=app_id, role_id=role_id)
    if changes.get("code"):
        _ensure_role_code_unique(db, app_id=app_id, code=changes["code"], exclude_id=role.id)
    _apply_changes(role, changes, _ROLE_FIELDS)
    commit_unique(db, message="角色编码已存在。", details={"field": "code"})
    db.refresh(role)
    return role


def delete_role(db: Session, *, app_id: str, role_id: int) -> None:
    _soft_delete(db, get_role(db, app_id=app_id, role_id=role_id))


def get_role_permission_ids(db: Session, *, app_id: str, role_id: int) -> list[int]:
    get_role(db, app_id=app_id, role_id=role_id)
    stmt = (
        select(RolePermission.permission_id)
        .where(RolePermission.app_id == app_id)
        .where(RolePermission.role_id == role_id)
        .order_by(RolePermission.permission_id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def set_role_permissions(db: Session, *, app_id: str, role_id: int, permission_ids: list[int]) -> list[int]:
    """整体替换角色权限集合，仅接受同一应用内的权限。"""
    get_role(db, app_id=app_id, role_id=role_id)
    wanted = set(permission_ids)
    missing = wanted - _existing_ids(db, Permission, app_id=app_id, ids=wanted)
    if missing:
        raise NotFoundError("权限不存在或不属于当前应用。", details={"permission_ids": sorted(missing)})

    db.execute(delete(RolePermission).where(RolePermission.app_id == app_id).where(RolePermission.role_id == role_id))
    for permission_id in sorted(wanted):
        db.add(RolePermission(app_id=app_id, role_id=role_id, permission_id=permission_id))
    db.commit()
    logger.info("role permissions replaced app_id=%s role_id=%s count=%s", app_id, role_id, len(wanted))
    return sorted(wanted)


# ---- 权限 ----


def list_permissions(db: Session, *, app_id: str, page: int = 1, page_size: int = 20, status: str | None = None):
    return _list_scoped(db, Permission, app_id=app_id, page=page, page_size=page_size, status=status)


def get_permission(db: Session, *, app_id: str, permission_id: int) -> Permission:
    return _get_scoped(db, Permission, app_id=app_id, item_id=permission_id, label="权限")


def create_permission(
    db: Session,
    *,
    app_id: str,
    name: str,
    code: str,
    resource: str,
    action: str,
    description: str | None = None,
) -> Permission:
    # 权限编码允许重复。
    permission = Permission(
        app_id=app_id,
        name=name,
        code=code,
        resource=resource,
        action=action,
        description=description,
        status=EntityStatus.ENABLED,
    )
    db.add(permission)
    db.commit()
    db.refresh(permission)
    return permission


def update_permission(db: Session, *, app_id: str, permission_id: int, changes: dict[str, Any]) -> Permission:
    permission = get_permission(db, app_id=app_id, permission_id=permission_id)
    _apply_changes(permission, changes, _PERMISSION_FIELDS)
    db.commit()
    db.refresh(permission)
    return permission


def delete_permission(db: Session, *, app_id: str, permission_id: int) -> None:
    _soft_delete(db, get_permission(db, app_id=app_id, permission_id=permission_id))


# ---- 接口 ----


def _ensure_api_unique(db: Session, *, app_id: str, path: str, method: str, exclude_id: int | None = None) -> None:
    stmt = (
        select(ApiResource.id)
        .where(ApiResource.app_id == app_id)
        .where(ApiResource.path == path)
        .where(ApiResource.method == method)
        .where(ApiResource.deleted_at.is_(None))
    )
    if exclude_id is not None:
        stmt = stmt.where(ApiResource.id != exclude_id)
    if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
        raise ConflictError("接口已存在。", details={"path": path, "method": method})


def list_apis(db: Session, *, app_id: str, page: int = 1, page_size: int = 20, status: str | None = None):
    return _list_scoped(db, ApiResource, app_id=app_id, page=page, page_size=page_size, status=status)


def get_api(db: Session, *, app_id: str, api_id: int) -> ApiResource:
    return _get_scoped(db, ApiResource, app_id=app_id, item_id=api_id, label="接口")


def create_api(
    db: Session,
    *,
    app_id: str,
    path: str,
    method: str,
    permission_id: int,
    description: str | None = None,
) -> ApiResource:
    """创建接口资源，绑定权限必须属于同一应用。"""
    method = method.upper()
    get_permission(db, app_id=app_id, permission_id=permission_id)
    _ensure_api_unique(db, app_id=app_id, path=path, method=method)
    api = ApiResource(
        app_id=app_id,
        path=path,
        method=method,
        permission_id=permission_id,
        description=description,
        status=EntityStatus.ENABLED,
    )
    db.add(api)
    commit_unique(db, message="接口已存在。", details={"path": path, "method": method})
    db.refresh(api)
    return api


def update_api(db: Session, *, app_id: str, api_id: int, changes: dict[str, Any]) -> ApiResource:
    api = get_api(db, app_id=app_id, api_id=api_id)
    changes = dict(changes)
    if changes.get("method"):
        changes["method"] = str(changes["method"]).upper()
    if changes.get("permission_id") is not None:
        get_permission(db, app_id=app_id, permission_id=changes["permission_id"])
    if changes.get("path") or changes.get("method"):
        _ensure_api_unique(
            db,
            app_id=app_id,
            path=changes.get("path") or api.path,
            method=changes.get("method") or api.method,
            exclude_id=api.id,
        )
    _apply_changes(api, changes, _API_FIELDS)
    commit_unique(db, message="接口已存在。", details={"path": api.path, "method": api.method})
    db.refresh(api)
    return api


def delete_api(db: Session, *, app_id: str, api_id: int) -> None:
    _soft_delete(db, get_api(db, app_id=app_id, api_id=api_id))


# ---- 用户 ----


def list_users(db: Session, *, app_id: str, page: int = 1, page_size: int = 20, status: str | None = None):
    return _list_scoped(db, User, app_id=app_id, page=page, page_size=page_size, status=status)


def get_user(db: Session, *, app_id: str, user_id: int) -> User:
    return _get_scoped(db, User, app_id=app_id, item_id=user_id, label="用户")


def create_user(
    db: Session,
    *,
    passwords: PasswordManager,
    app_id: str,
    username: str,
    password: str,
    email: str | None = None,
    phone: str | None = None,
    is_super_admin: bool = False,
) -> User:
    ensure_user_unique(db, app_id=app_id, username=username, email=email)
    user = User(
        app_id=app_id,
        username=username,
        password_hash=passwords.hash(password),
        email=email,
        phone=phone,
        is_super_admin=is_super_admin,
        status=EntityStatus.ENABLED,
    )
    db.add(user)
    commit_unique(db, message="用户名或邮箱已存在。", details={"app_id": app_id})
    db.refresh(user)
    return user


def update_user(
    db: Session,
    *,
    passwords: PasswordManager,
    app_id: str,
    user_id: int,
    changes: dict[str, Any],
) -> User:
    """按补丁更新用户，所属应用不可变更，口令重新哈希。"""
    user = get_user(db, app_id=app_id, user_id=user_id)
    changes = dict(changes)
    if changes.get("email"):
        ensure_user_unique(db, app_id=app_id, email=changes["email"], exclude_user_id=user.id)
    if "password" in changes:
        password = changes.pop("password")
        if not password:
            raise BadRequestError("password 不能为空。", details={"field": "password"})
        user.password_hash = passwords.hash(password)
    _apply_changes(user, changes, _USER_FIELDS - {"password"})
    commit_unique(db, message="邮箱已存在。", details={"field": "email"})
    db.refresh(user)
    return user


def delete_user(db: Session, *, app_id: str, user_id: int) -> None:
    _soft_delete(db, get_user(db, app_id=app_id, user_id=user_id))


def get_user_role_ids(db: Session, *, app_id: str, user_id: int) -> list[int]:
    get_user(db, app_id=app_id, user_id=user_id)
    stmt = (
        select(UserRole.role_id)
        .where(UserRole.app_id == app_id)
        .where(UserRole.user_id == user_id)
        .order_by(UserRole.role_id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def set_user_roles(db: Session, *, app_id: str, user_id: int, role_ids: list[int]) -> list[int]:
    """整体替换用户角色集合，仅接受同一应用内的角色。"""
    get_user(db, app_id=app_id, user_id=user_id)
    wanted = set(role_ids)
    missing = wanted - _existing_ids(db, Role, app_id=app_id, ids=wanted)
    if missing:
        raise NotFoundError("角色不存在或不属于当前应用。", details={"role_ids": sorted(missing)})

    db.execute(delete(UserRole).where(UserRole.app_id == app_id).where(UserRole.user_id == user_id))
    for role_id in sorted(wanted):
        db.add(UserRole(app_id=app_id, user_id=user_id, role_id=role_id))
    db.commit()
    logger.info("user roles replaced app_id=%s user_id=%s count=%s", app_id, user_id, len(wanted))
    return sorted(wanted)
