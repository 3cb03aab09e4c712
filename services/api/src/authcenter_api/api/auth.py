"""终端用户认证接口。"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import token_pair, user_profile
from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import CurrentPrincipal, get_current_principal, require_app_credentials
from authcenter_api.models.tenant import Application
from authcenter_api.schemas.auth import (
    AuthLoginRequest,
    AuthLogoutRequest,
    AuthRefreshRequest,
    AuthRegisterRequest,
    LoginCodeRequest,
)
from authcenter_api.schemas.common import ErrorResponse, SuccessResponse
from authcenter_api.schemas.responses import AuthLoginData, AuthLogoutData, LoginCodeData, UserProfileData
from authcenter_api.services import directory
from authcenter_api.utils.response import success

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    summary="用户登录",
    description="按应用配置的登录方式（0 密码 / 1 验证码）认证，成功后返回访问令牌与刷新令牌。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLoginData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def login(
    payload: AuthLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    """登录并签发令牌对。"""
    result = directory.login(
        context,
        db,
        app_id=payload.app_id,
        username=payload.username,
        password=payload.password,
        phone=payload.phone,
        code=payload.code,
    )
    data = token_pair(result.access, result.refresh)
    data["user"] = user_profile(result.user, result.roles)
    return success(request, data)


@router.post(
    "/register",
    summary="用户注册",
    description="在可用应用内注册账号，用户名与邮箱在应用内唯一。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserProfileData],
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def register(
    payload: AuthRegisterRequest,
    request: Request,
    context: AppContext = Depends(get_app_context),
    db: Session = Depends(get_db),
):
    """注册终端用户。"""
    user = directory.register(
        context,
        db,
        app_id=payload.app_id,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        phone=payload.phone,
    )
    return success(request, user_profile(user, []))


@router.post(
    "/refresh",
    summary="刷新令牌",
    description="使用刷新令牌换取新的令牌对，角色按当前授权重新解析，旧刷新令牌随即吊销。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLoginData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def refresh(
    payload: AuthRefreshRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    """刷新令牌对。"""
    result = directory.refresh_session(context, db, refresh_token=payload.refresh_token)
    data = token_pair(result.access, result.refresh)
    data["user"] = user_profile(result.user, result.roles)
    return success(request, data)


@router.post(
    "/logout",
    summary="用户登出",
    description="吊销当前访问令牌，可同时吊销刷新令牌。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLogoutData],
    responses={401: {"model": ErrorResponse}},
)
def logout(
    request: Request,
    payload: AuthLogoutRequest | None = None,
    principal: CurrentPrincipal = Depends(get_current_principal),
    context: AppContext = Depends(get_app_context),
):
    """登出。"""
    refresh_token = payload.refresh_token if payload else None
    directory.logout(context, claims=principal.claims, access_token=principal.token, refresh_token=refresh_token)
    return success(request, {"logged_out": True, "revoked_refresh": bool(refresh_token)})


@router.get(
    "/user",
    summary="当前用户信息",
    description="返回当前访问令牌对应的用户资料与有效角色。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserProfileData],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def user_info(
    request: Request,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    """查询当前用户。"""
    user, roles = directory.get_user_info(context, db, claims=principal.claims)
    return success(request, user_profile(user, roles))


@router.post(
    "/login-code",
    summary="签发登录验证码",
    description="应用后端携带 X-App-Id / X-App-Secret 调用，返回一次性验证码，由应用自行下发。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[LoginCodeData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def login_code(
    payload: LoginCodeRequest,
    request: Request,
    app: Application = Depends(require_app_credentials),
    context: AppContext = Depends(get_app_context),
):
    """签发验证码。"""
    code, ttl = directory.issue_login_code(context, app=app, phone=payload.phone)
    return success(request, {"phone": payload.phone, "code": code, "expires_in": ttl})
