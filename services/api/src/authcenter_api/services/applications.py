"""应用（租户）生命周期管理。"""

from datetime import datetime, timezone
import logging
import secrets
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from authcenter_api.db.session import commit_unique
from authcenter_api.errors import BadRequestError, ConflictError, NotFoundError
from authcenter_api.models.enums import EntityStatus, LoginMethod
from authcenter_api.models.tenant import Application, User
from authcenter_api.utils.pagination import paginate

logger = logging.getLogger("authcenter_api.applications")

_PATCHABLE_FIELDS = {"name", "description", "status"}
_NULLABLE_FIELDS = {"description"}


def generate_app_id() -> str:
    return f"app_{uuid4().hex}"


def generate_app_secret() -> str:
    return f"app_{secrets.token_hex(32)}"


def _ensure_name_unique(db: Session, name: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Application.id).where(Application.name == name).where(Application.deleted_at.is_(None))
    if exclude_id is not None:
        stmt = stmt.where(Application.id != exclude_id)
    if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
        raise ConflictError("应用名称已存在。", details={"field": "name"})


def get_app(db: Session, app_id: str) -> Application:
    """按应用标识查询未删除应用，不存在时抛出 `NotFoundError`。"""
    stmt = select(Application).where(Application.app_id == app_id).where(Application.deleted_at.is_(None))
    app = db.execute(stmt).scalar_one_or_none()
    if app is None:
        raise NotFoundError("应用不存在。", details={"app_id": app_id})
    return app


def list_apps(
    db: Session,
    *,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Application], int]:
    stmt = select(Application).where(Application.deleted_at.is_(None))
    if status:
        stmt = stmt.where(Application.status == status)
    return paginate(db, stmt.order_by(Application.id.asc()), page=page, page_size=page_size)


def create_app_record(db: Session, *, name: str, description: str | None = None) -> Application:
    """创建应用并生成应用标识与密钥。"""
    _ensure_name_unique(db, name)
    app = Application(
        app_id=generate_app_id(),
        name=name,
        app_secret=generate_app_secret(),
        description=description,
        status=EntityStatus.ENABLED,
        login_method=LoginMethod.PASSWORD,
    )
    db.add(app)
    commit_unique(db, message="应用名称已存在。", details={"field": "name"})
    db.refresh(app)
    logger.info("application created app_id=%s", app.app_id)
    return app


def update_app(db: Session, *, app_id: str, changes: dict[str, Any]) -> Application:
    """按补丁更新应用，显式 null 仅允许用于可空字段。"""
    app = get_app(db, app_id)
    for field_name, value in changes.items():
        if field_name not in _PATCHABLE_FIELDS:
            continue
        if value is None and field_name not in _NULLABLE_FIELDS:
            raise BadRequestError(f"{field_name} 不能为空。", details={"field": field_name})
        if field_name == "name":
            _ensure_name_unique(db, value, exclude_id=app.id)
        setattr(app, field_name, value)
    commit_unique(db, message="应用名称已存在。", details={"field": "name"})
    db.refresh(app)
    return app


def delete_app(db: Session, *, app_id: str) -> None:
    """软删除应用，不物理删除关联数据。"""
    app = get_app(db, app_id)
    app.deleted_at = datetime.now(timezone.utc)
    app.status = EntityStatus.DISABLED
    db.commit()
    logger.info("application deleted app_id=%s", app_id)


def regenerate_secret(db: Session, *, app_id: str) -> Application:
    """轮换应用密钥，旧密钥立即失效。"""
    app = get_app(db, app_id)
    app.app_secret = generate_app_secret()
    db.commit()
    db.refresh(app)
    logger.info("application secret regenerated app_id=%s", app_id)
    return app


def list_app_users(db: Session, *, app_id: str, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
    get_app(db, app_id)
    stmt = select(User).where(User.app_id == app_id).where(User.deleted_at.is_(None)).order_by(User.id.asc())
    return paginate(db, stmt, page=page, page_size=page_size)


def get_login_method(db: Session, *, app_id: str) -> int:
    return int(get_app(db, app_id).login_method)


def set_login_method(db: Session, *, app_id: str, login_method: int) -> int:
    if login_method not in {method.value for method in LoginMethod}:
        raise BadRequestError("登录方式不合法。", details={"login_method": login_method})
    app = get_app(db, app_id)
    app.login_method = login_method
    db.commit()
    return int(app.login_method)
