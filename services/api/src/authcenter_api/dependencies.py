"""请求上下文依赖。

职责:
1. 解析并校验终端用户访问令牌，每次请求实时查询黑名单。
2. 校验应用凭据头（X-App-Id / X-App-Secret）。
3. 解析管理员令牌并完成两级管理员授权，得到本次操作的目标应用。
"""

from dataclasses import dataclass

from fastapi import Depends, Header, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from authcenter_api.context import AppContext, get_app_context
from authcenter_api.core.security import TokenClaims, extract_bearer_token
from authcenter_api.db.session import get_db
from authcenter_api.errors import InvalidTokenError, NotFoundError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.tenant import Application
from authcenter_api.services.admin_auth import get_active_admin
from authcenter_api.services.admin_scope import require_system_admin, resolve_admin_scope
from authcenter_api.services.directory import get_application, validate_app_credentials

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentPrincipal:
    """已认证的终端用户。"""

    # 已校验的令牌声明。
    claims: TokenClaims
    # 原始访问令牌，登出时用于吊销。
    token: str

    @property
    def user_id(self) -> int:
        return int(self.claims.user_id or 0)

    @property
    def app_id(self) -> str:
        return self.claims.app_id or ""


@dataclass
class AdminContext:
    """已认证的管理员。"""

    admin: SystemAdmin
    claims: TokenClaims
    token: str


@dataclass
class AdminScope:
    """管理员授权通过后的目标应用。"""

    admin: SystemAdmin
    app_id: str


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    authorization = None
    if credentials is not None and credentials.credentials:
        authorization = f"{credentials.scheme} {credentials.credentials}"
    return extract_bearer_token(authorization)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    context: AppContext = Depends(get_app_context),
) -> CurrentPrincipal:
    """校验用户访问令牌，已吊销令牌即使签名有效也拒绝。"""
    token = _bearer_token(credentials)
    claims = context.token_engine.validate_access_token(token)
    if context.token_engine.is_revoked(claims.jti):
        raise InvalidTokenError("令牌已被吊销。")
    return CurrentPrincipal(claims=claims, token=token)


def require_app_credentials(
    x_app_id: str | None = Header(default=None, alias="X-App-Id", description="应用标识。"),
    x_app_secret: str | None = Header(default=None, alias="X-App-Secret", description="应用密钥。"),
    db: Session = Depends(get_db),
) -> Application:
    """校验应用凭据头。"""
    return validate_app_credentials(db, app_id=x_app_id, app_secret=x_app_secret)


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    context: AppContext = Depends(get_app_context),
    db: Session = Depends(get_db),
) -> AdminContext:
    """校验管理员访问令牌，并确认管理员仍处于启用状态。"""
    token = _bearer_token(credentials)
    claims = context.token_engine.validate_admin_access_token(token)
    if context.token_engine.is_revoked(claims.jti):
        raise InvalidTokenError("令牌已被吊销。")
    admin = get_active_admin(db, claims.admin_id)
    if admin is None:
        raise InvalidTokenError("管理员不存在或已被禁用。")
    return AdminContext(admin=admin, claims=claims, token=token)


def get_system_admin(current: AdminContext = Depends(get_current_admin)) -> AdminContext:
    """仅允许系统管理员。"""
    require_system_admin(current.admin)
    return current


def get_admin_scope(
    app_id: str | None = Query(default=None, description="目标应用标识，系统管理员必填。"),
    current: AdminContext = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> AdminScope:
    """先做越权判断，再确认目标应用存在。"""
    target = resolve_admin_scope(current.admin, app_id)
    if get_application(db, target) is None:
        raise NotFoundError("应用不存在。", details={"app_id": target})
    return AdminScope(admin=current.admin, app_id=target)
