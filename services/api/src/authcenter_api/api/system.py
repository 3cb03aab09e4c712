"""管理员认证接口。"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import admin_profile, token_pair
from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import AdminContext, get_current_admin
from authcenter_api.schemas.admin import AdminCreateRequest, AdminLoginRequest, AdminLogoutRequest, AdminRefreshRequest
from authcenter_api.schemas.common import ErrorResponse, SuccessResponse
from authcenter_api.schemas.responses import AdminLoginData, AdminProfileData, AuthLogoutData
from authcenter_api.services import admin_auth
from authcenter_api.utils.response import success

router = APIRouter(prefix="/system", tags=["system"])


def _login_payload(result: admin_auth.AdminLoginResult) -> dict:
    data = token_pair(result.access, result.refresh)
    data["admin"] = admin_profile(result.admin)
    return data


@router.post(
    "/login",
    summary="管理员登录",
    description="系统管理员与应用管理员统一登录入口。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminLoginData],
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def login(
    payload: AdminLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    result = admin_auth.admin_login(context, db, username=payload.username, password=payload.password)
    return success(request, _login_payload(result))


@router.post(
    "/register",
    summary="初始化管理员",
    description="仅在系统尚无任何管理员时可用，且首个管理员必须为系统管理员。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def register(
    payload: AdminCreateRequest,
    request: Request,
    context: AppContext = Depends(get_app_context),
    db: Session = Depends(get_db),
):
    admin = admin_auth.bootstrap_register(
        context,
        db,
        username=payload.username,
        password=payload.password,
        admin_type=payload.admin_type,
        email=payload.email,
        phone=payload.phone,
    )
    return success(request, admin_profile(admin))


@router.post(
    "/refresh",
    summary="管理员刷新令牌",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminLoginData],
    responses={401: {"model": ErrorResponse}},
)
def refresh(
    payload: AdminRefreshRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    result = admin_auth.admin_refresh(context, db, refresh_token=payload.refresh_token)
    return success(request, _login_payload(result))


@router.post(
    "/logout",
    summary="管理员登出",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLogoutData],
    responses={401: {"model": ErrorResponse}},
)
def logout(
    request: Request,
    payload: AdminLogoutRequest | None = None,
    current: AdminContext = Depends(get_current_admin),
    context: AppContext = Depends(get_app_context),
):
    refresh_token = payload.refresh_token if payload else None
    admin_auth.admin_logout(context, claims=current.claims, access_token=current.token, refresh_token=refresh_token)
    return success(request, {"logged_out": True, "revoked_refresh": bool(refresh_token)})


@router.get(
    "/admin/info",
    summary="当前管理员信息",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses={401: {"model": ErrorResponse}},
)
def admin_info(request: Request, current: AdminContext = Depends(get_current_admin)):
    return success(request, admin_profile(current.admin))
