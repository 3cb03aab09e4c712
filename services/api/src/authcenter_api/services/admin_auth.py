"""管理员认证服务。"""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from authcenter_api.context import AppContext
from authcenter_api.core.security import IssuedToken, TokenClaims
from authcenter_api.errors import ForbiddenError, InvalidCredentialsError, InvalidTokenError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType, SubjectKind
from authcenter_api.services.system_admins import create_admin
from authcenter_api.services.tokens import record_issued_tokens

logger = logging.getLogger("authcenter_api.admin_auth")


@dataclass
class AdminLoginResult:
    """管理员登录或刷新结果。"""

    access: IssuedToken
    refresh: IssuedToken
    admin: SystemAdmin


def get_active_admin(db: Session, admin_id: int | None) -> SystemAdmin | None:
    if admin_id is None:
        return None
    stmt = (
        select(SystemAdmin)
        .where(SystemAdmin.id == admin_id)
        .where(SystemAdmin.is_active.is_(True))
        .where(SystemAdmin.deleted_at.is_(None))
    )
    return db.execute(stmt).scalar_one_or_none()


def _issue_admin_session(context: AppContext, db: Session, *, admin: SystemAdmin) -> AdminLoginResult:
    access, refresh = context.token_engine.issue_admin_tokens(
        admin_id=admin.id,
        username=admin.username,
        admin_type=admin.admin_type,
        app_id=admin.app_id,
    )
    record_issued_tokens(
        db,
        app_id=admin.app_id,
        subject_kind=SubjectKind.ADMIN,
        subject_id=admin.id,
        tokens=[access, refresh],
    )
    return AdminLoginResult(access=access, refresh=refresh, admin=admin)


def admin_login(context: AppContext, db: Session, *, username: str, password: str) -> AdminLoginResult:
    """管理员登录，任何不匹配统一返回 `InvalidCredentialsError`。"""
    stmt = (
        select(SystemAdmin)
        .where(SystemAdmin.username == username)
        .where(SystemAdmin.is_active.is_(True))
        .where(SystemAdmin.deleted_at.is_(None))
    )
    admin = db.execute(stmt).scalar_one_or_none()
    if admin is None:
        context.passwords.verify_dummy(password)
        logger.warning("admin login failed username=%s", username)
        raise InvalidCredentialsError()
    if not context.passwords.verify(password, admin.password_hash):
        logger.warning("admin login failed username=%s", username)
        raise InvalidCredentialsError()

    admin.last_login_at = datetime.now(timezone.utc)
    return _issue_admin_session(context, db, admin=admin)


def admin_refresh(context: AppContext, db: Session, *, refresh_token: str) -> AdminLoginResult:
    """管理员刷新令牌换取新令牌对，旧刷新令牌随即吊销。"""
    claims = context.token_engine.validate_admin_refresh_token(refresh_token)
    if context.token_engine.is_revoked(claims.jti):
        raise InvalidTokenError("刷新令牌已被吊销。")
    admin = get_active_admin(db, claims.admin_id)
    if admin is None:
        raise InvalidTokenError("管理员不存在或已被禁用。")
    result = _issue_admin_session(context, db, admin=admin)
    context.token_engine.revoke(refresh_token)
    return result


def admin_logout(
    context: AppContext,
    *,
    claims: TokenClaims,
    access_token: str,
    refresh_token: str | None = None,
) -> None:
    """吊销管理员访问令牌，提供刷新令牌时一并吊销。"""
    if refresh_token:
        refresh_claims = context.token_engine.validate_admin_refresh_token(refresh_token)
        if refresh_claims.admin_id != claims.admin_id:
            raise InvalidTokenError("刷新令牌与当前管理员不匹配。")
    context.token_engine.revoke(access_token)
    if refresh_token:
        context.token_engine.revoke(refresh_token)


def bootstrap_register(
    context: AppContext,
    db: Session,
    *,
    username: str,
    password: str,
    admin_type: str,
    email: str | None = None,
    phone: str | None = None,
) -> SystemAdmin:
    """初始化首个管理员，仅在系统尚无管理员时开放，且必须为系统管理员。"""
    existing = db.execute(select(func.count(SystemAdmin.id))).scalar_one()
    if existing:
        raise ForbiddenError("管理员已存在，请由系统管理员创建新账号。", details={"reason": "bootstrap_closed"})
    if admin_type != AdminType.SYSTEM:
        raise ForbiddenError("首个管理员必须为系统管理员。", details={"reason": "bootstrap_requires_system"})
    admin = create_admin(
        db,
        passwords=context.passwords,
        username=username,
        password=password,
        admin_type=AdminType.SYSTEM,
        app_id=None,
        email=email,
        phone=phone,
    )
    logger.info("bootstrap system admin created id=%s", admin.id)
    return admin
