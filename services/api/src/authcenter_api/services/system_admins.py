"""管理员账号管理（仅系统管理员可用）。"""

from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from authcenter_api.core.passwords import PasswordManager
from authcenter_api.db.session import commit_unique
from authcenter_api.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType, EntityStatus
from authcenter_api.models.tenant import Application
from authcenter_api.utils.pagination import paginate

logger = logging.getLogger("authcenter_api.system_admins")

_PATCHABLE_FIELDS = {"email", "phone", "is_active"}
_NULLABLE_FIELDS = {"email", "phone"}


def _ensure_admin_unique(
    db: Session,
    *,
    username: str | None = None,
    email: str | None = None,
    exclude_admin_id: int | None = None,
) -> None:
    """用户名在全部未删除管理员中唯一，邮箱同理。"""
    checks = []
    if username:
        checks.append(("username", SystemAdmin.username == username))
    if email:
        checks.append(("email", func.lower(SystemAdmin.email) == email.lower()))
    for field_name, condition in checks:
        stmt = select(SystemAdmin.id).where(SystemAdmin.deleted_at.is_(None)).where(condition)
        if exclude_admin_id is not None:
            stmt = stmt.where(SystemAdmin.id != exclude_admin_id)
        if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
            raise ConflictError(f"{field_name} 已存在。", details={"field": field_name})


def _validate_binding(db: Session, *, admin_type: str, app_id: str | None) -> None:
    if admin_type == AdminType.SYSTEM:
        if app_id:
            raise BadRequestError("系统管理员不能绑定应用。")
        return
    if admin_type != AdminType.APP:
        raise BadRequestError("管理员类型不合法。")
    if not app_id:
        raise BadRequestError("应用管理员必须绑定应用。")
    app = db.execute(
        select(Application).where(Application.app_id == app_id).where(Application.deleted_at.is_(None))
    ).scalar_one_or_none()
    if app is None or app.status != EntityStatus.ENABLED:
        raise NotFoundError("绑定的应用不存在或已禁用。", details={"app_id": app_id})


def get_admin(db: Session, admin_id: int) -> SystemAdmin:
    stmt = select(SystemAdmin).where(SystemAdmin.id == admin_id).where(SystemAdmin.deleted_at.is_(None))
    admin = db.execute(stmt).scalar_one_or_none()
    if admin is None:
        raise NotFoundError("管理员不存在。")
    return admin


def list_admins(
    db: Session,
    *,
    admin_type: str | None = None,
    app_id: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[SystemAdmin], int]:
    stmt = select(SystemAdmin).where(SystemAdmin.deleted_at.is_(None))
    if admin_type:
        stmt = stmt.where(SystemAdmin.admin_type == admin_type)
    if app_id:
        stmt = stmt.where(SystemAdmin.app_id == app_id)
    return paginate(db, stmt.order_by(SystemAdmin.id.asc()), page=page, page_size=page_size)


def create_admin(
    db: Session,
    *,
    passwords: PasswordManager,
    username: str,
    password: str,
    admin_type: str,
    app_id: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> SystemAdmin:
    """创建管理员：应用管理员须绑定可用应用，系统管理员不得绑定应用。"""
    _validate_binding(db, admin_type=admin_type, app_id=app_id)
    _ensure_admin_unique(db, username=username, email=email)
    admin = SystemAdmin(
        username=username,
        email=email,
        phone=phone,
        password_hash=passwords.hash(password),
        admin_type=admin_type,
        app_id=app_id if admin_type == AdminType.APP else None,
        is_active=True,
    )
    db.add(admin)
    commit_unique(db, message="管理员用户名或邮箱已存在。")
    db.refresh(admin)
    logger.info("admin created id=%s type=%s app_id=%s", admin.id, admin.admin_type, admin.app_id)
    return admin


def update_admin(db: Session, *, admin_id: int, changes: dict[str, Any]) -> SystemAdmin:
    """按补丁更新管理员，仅应用请求中出现的字段。"""
    admin = get_admin(db, admin_id)
    for field_name, value in changes.items():
        if field_name not in _PATCHABLE_FIELDS:
            continue
        if value is None and field_name not in _NULLABLE_FIELDS:
            raise BadRequestError(f"{field_name} 不能为空。", details={"field": field_name})
        if field_name == "email" and value:
            _ensure_admin_unique(db, email=value, exclude_admin_id=admin.id)
        setattr(admin, field_name, value)
    commit_unique(db, message="管理员邮箱已存在。", details={"field": "email"})
    db.refresh(admin)
    return admin


def delete_admin(db: Session, *, admin_id: int, actor_id: int) -> None:
    """软删除管理员，不允许删除自己。"""
    if admin_id == actor_id:
        raise ForbiddenError("不能删除当前登录的管理员。")
    admin = get_admin(db, admin_id)
    admin.deleted_at = datetime.now(timezone.utc)
    admin.is_active = False
    db.commit()
    logger.info("admin deleted id=%s by=%s", admin_id, actor_id)


def reset_admin_password(db: Session, *, passwords: PasswordManager, admin_id: int, password: str) -> None:
    admin = get_admin(db, admin_id)
    admin.password_hash = passwords.hash(password)
    db.commit()
