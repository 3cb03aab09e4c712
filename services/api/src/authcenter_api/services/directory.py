"""应用与终端用户认证服务。

职责:
1. 校验应用凭据（X-App-Id / X-App-Secret）与应用状态。
2. 按应用登录方式完成密码或验证码登录，签发并落库访问/刷新令牌。
3. 注册、刷新、登出与当前用户信息查询。
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import hmac
import logging
import secrets
import string

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from authcenter_api.context import AppContext
from authcenter_api.core.cache import login_code_key
from authcenter_api.core.security import IssuedToken, TokenClaims
from authcenter_api.db.session import commit_unique
from authcenter_api.errors import (
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TenantUnavailableError,
)
from authcenter_api.models.enums import EntityStatus, LoginMethod, SubjectKind
from authcenter_api.models.permission import Role
from authcenter_api.models.tenant import Application, User
from authcenter_api.services.permissions import PermissionResolver
from authcenter_api.services.tokens import record_issued_tokens

logger = logging.getLogger("authcenter_api.directory")


@dataclass
class LoginResult:
    """登录或刷新结果。"""

    access: IssuedToken
    refresh: IssuedToken
    user: User
    roles: list[Role]


def get_application(db: Session, app_id: str) -> Application | None:
    """按应用标识查询未删除应用。"""
    stmt = select(Application).where(Application.app_id == app_id).where(Application.deleted_at.is_(None))
    return db.execute(stmt).scalar_one_or_none()


def get_enabled_application(db: Session, app_id: str) -> Application:
    """返回可用应用，不存在、已删除或已禁用时抛出 `TenantUnavailableError`。"""
    app = get_application(db, app_id) if app_id else None
    if app is None or app.status != EntityStatus.ENABLED:
        raise TenantUnavailableError(details={"app_id": app_id})
    return app


def validate_app_credentials(db: Session, *, app_id: str | None, app_secret: str | None) -> Application:
    """校验应用凭据头，密钥使用常量时间比较。"""
    if not app_id or not app_secret:
        raise InvalidCredentialsError("缺少应用凭据。")
    app = get_application(db, app_id)
    if app is None or not hmac.compare_digest(app.app_secret.encode("utf-8"), app_secret.encode("utf-8")):
        raise InvalidCredentialsError("应用凭据错误。")
    if app.status != EntityStatus.ENABLED:
        raise TenantUnavailableError(details={"app_id": app_id})
    return app


def ensure_user_unique(
    db: Session,
    *,
    app_id: str,
    username: str | None = None,
    email: str | None = None,
    exclude_user_id: int | None = None,
) -> None:
    """校验应用内未删除用户的用户名与邮箱唯一。"""
    checks = []
    if username:
        checks.append(("username", User.username == username))
    if email:
        checks.append(("email", func.lower(User.email) == email.lower()))
    for field_name, condition in checks:
        stmt = (
            select(User.id)
            .where(User.app_id == app_id)
            .where(User.deleted_at.is_(None))
            .where(condition)
        )
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        if db.execute(stmt.limit(1)).scalar_one_or_none() is not None:
            raise ConflictError(f"{field_name} 已存在。", details={"field": field_name})


def _find_active_user(db: Session, *, app_id: str, **filters: object) -> User | None:
    stmt = (
        select(User)
        .where(User.app_id == app_id)
        .where(User.status == EntityStatus.ENABLED)
        .where(User.deleted_at.is_(None))
    )
    for column_name, value in filters.items():
        stmt = stmt.where(getattr(User, column_name) == value)
    return db.execute(stmt.order_by(User.id.asc()).limit(1)).scalar_one_or_none()


def _authenticate_password(context: AppContext, db: Session, *, app_id: str, username: str | None, password: str | None) -> User:
    if not username or not password:
        raise BadRequestError("用户名和密码不能为空。")
    user = _find_active_user(db, app_id=app_id, username=username)
    if user is None:
        context.passwords.verify_dummy(password)
        raise InvalidCredentialsError()
    if not context.passwords.verify(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def _authenticate_code(context: AppContext, db: Session, *, app_id: str, phone: str | None, code: str | None) -> User:
    if not phone or not code:
        raise BadRequestError("手机号和验证码不能为空。")
    user = _find_active_user(db, app_id=app_id, phone=phone)
    key = login_code_key(app_id, phone)
    expected = context.cache.get_value(key)
    if user is None or not expected or not hmac.compare_digest(expected.encode("utf-8"), code.encode("utf-8")):
        raise InvalidCredentialsError("验证码错误或已过期。")
    # 验证码一次性使用。
    context.cache.delete(key)
    return user


def _issue_session(context: AppContext, db: Session, *, user: User) -> LoginResult:
    resolver = PermissionResolver(db, context.cache, context.settings)
    roles = resolver.user_roles(user.id, user.app_id)
    access = context.token_engine.issue_access_token(user.id, user.app_id, [role.id for role in roles])
    refresh = context.token_engine.issue_refresh_token(user.id, user.app_id)
    record_issued_tokens(
        db,
        app_id=user.app_id,
        subject_kind=SubjectKind.USER,
        subject_id=user.id,
        tokens=[access, refresh],
    )
    return LoginResult(access=access, refresh=refresh, user=user, roles=roles)


def login(
    context: AppContext,
    db: Session,
    *,
    app_id: str,
    username: str | None = None,
    password: str | None = None,
    phone: str | None = None,
    code: str | None = None,
) -> LoginResult:
    """按应用登录方式认证用户并签发令牌。"""
    app = get_enabled_application(db, app_id)
    try:
        if app.login_method == LoginMethod.CODE:
            user = _authenticate_code(context, db, app_id=app.app_id, phone=phone, code=code)
        else:
            user = _authenticate_password(context, db, app_id=app.app_id, username=username, password=password)
    except InvalidCredentialsError:
        logger.warning("login failed app_id=%s method=%s", app.app_id, app.login_method)
        raise

    user.last_login_at = datetime.now(timezone.utc)
    return _issue_session(context, db, user=user)


def register(
    context: AppContext,
    db: Session,
    *,
    app_id: str,
    username: str,
    password: str,
    email: str | None = None,
    phone: str | None = None,
) -> User:
    """在可用应用内注册终端用户。"""
    app = get_enabled_application(db, app_id)
    ensure_user_unique(db, app_id=app.app_id, username=username, email=email)
    user = User(
        app_id=app.app_id,
        username=username,
        email=email,
        phone=phone,
        password_hash=context.passwords.hash(password),
        is_super_admin=False,
        status=EntityStatus.ENABLED,
    )
    db.add(user)
    commit_unique(db, message="用户名或邮箱已存在。", details={"app_id": app.app_id})
    db.refresh(user)
    return user


def refresh_session(context: AppContext, db: Session, *, refresh_token: str) -> LoginResult:
    """使用刷新令牌换取新令牌对，按当前角色重新签发并吊销旧刷新令牌。"""
    claims = context.token_engine.validate_refresh_token(refresh_token)
    if context.token_engine.is_revoked(claims.jti):
        raise InvalidTokenError("刷新令牌已被吊销。")
    get_enabled_application(db, claims.app_id or "")
    user = _find_active_user(db, app_id=claims.app_id or "", id=claims.user_id)
    if user is None:
        raise InvalidTokenError("用户不存在或已被禁用。")
    result = _issue_session(context, db, user=user)
    context.token_engine.revoke(refresh_token)
    return result


def logout(context: AppContext, *, claims: TokenClaims, access_token: str, refresh_token: str | None = None) -> None:
    """吊销当前访问令牌，提供刷新令牌时一并吊销。"""
    if refresh_token:
        refresh_claims = context.token_engine.validate_refresh_token(refresh_token)
        if refresh_claims.user_id != claims.user_id or refresh_claims.app_id != claims.app_id:
            raise InvalidTokenError("刷新令牌与当前用户不匹配。")
    context.token_engine.revoke(access_token)
    if refresh_token:
        context.token_engine.revoke(refresh_token)


def get_user_info(context: AppContext, db: Session, *, claims: TokenClaims) -> tuple[User, list[Role]]:
    """当前用户资料与有效角色。"""
    stmt = (
        select(User)
        .where(User.id == claims.user_id)
        .where(User.app_id == claims.app_id)
        .where(User.deleted_at.is_(None))
    )
    user = db.execute(stmt).scalar_one_or_none()
    if user is None:
        raise NotFoundError("用户不存在。")
    roles = PermissionResolver(db, context.cache, context.settings).user_roles(user.id, user.app_id)
    return user, roles


def issue_login_code(context: AppContext, *, app: Application, phone: str) -> tuple[str, int]:
    """生成一次性登录验证码并写入缓存，返回验证码与有效期。"""
    settings = context.settings
    code = "".join(secrets.choice(string.digits) for _ in range(settings.login_code_length))
    context.cache.set_value(login_code_key(app.app_id, phone), code, settings.login_code_ttl_seconds)
    logger.info("login code issued app_id=%s", app.app_id)
    return code, settings.login_code_ttl_seconds
