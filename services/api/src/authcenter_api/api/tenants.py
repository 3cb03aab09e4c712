"""应用（租户）管理接口，仅系统管理员可用。"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import app_view, user_view
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import AdminContext, get_system_admin
from authcenter_api.schemas.common import ErrorResponse, StatusValue, SuccessResponse
from authcenter_api.schemas.responses import AppData, AppSecretData, DeletedData, LoginMethodData, UserData
from authcenter_api.schemas.tenant import AppCreateRequest, AppUpdateRequest, LoginMethodUpdateRequest
from authcenter_api.services import applications
from authcenter_api.utils.pagination import pagination_meta
from authcenter_api.utils.response import success

router = APIRouter(prefix="/apps", tags=["apps"])

_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
AppIdPath = Annotated[str, Path(min_length=1, max_length=64, description="应用标识。")]


@router.get(
    "",
    summary="应用列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[AppData]],
    responses=_RESPONSES,
)
def list_apps(
    request: Request,
    page: int = Query(default=1, ge=1, description="页码。"),
    page_size: int = Query(default=20, ge=1, le=200, description="每页条数。"),
    app_status: StatusValue | None = Query(default=None, alias="status", description="按状态过滤。"),
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    items, total = applications.list_apps(db, status=app_status, page=page, page_size=page_size)
    return success(
        request,
        [app_view(app) for app in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "",
    summary="创建应用",
    description="生成应用标识与密钥，密钥仅在创建与轮换时返回。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AppSecretData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def create_app(
    payload: AppCreateRequest,
    request: Request,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    app = applications.create_app_record(db, name=payload.name, description=payload.description)
    return success(request, app_view(app, with_secret=True))


@router.get(
    "/{app_id}",
    summary="应用详情",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AppData],
    responses=_RESPONSES,
)
def get_app(
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    return success(request, app_view(applications.get_app(db, app_id)))


@router.patch(
    "/{app_id}",
    summary="更新应用",
    description="仅更新请求中出现的字段，description 传 null 表示清空。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AppData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def update_app(
    payload: AppUpdateRequest,
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    app = applications.update_app(db, app_id=app_id, changes=payload.changes())
    return success(request, app_view(app))


@router.delete(
    "/{app_id}",
    summary="删除应用",
    description="软删除，关联数据保留。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_app(
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    applications.delete_app(db, app_id=app_id)
    return success(request, {"deleted": True})


@router.post(
    "/{app_id}/regenerate-secret",
    summary="轮换应用密钥",
    description="生成新密钥，旧密钥立即失效。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AppSecretData],
    responses=_RESPONSES,
)
def regenerate_secret(
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    app = applications.regenerate_secret(db, app_id=app_id)
    return success(request, app_view(app, with_secret=True))


@router.get(
    "/{app_id}/users",
    summary="应用用户列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[UserData]],
    responses=_RESPONSES,
)
def list_app_users(
    request: Request,
    app_id: AppIdPath,
    page: int = Query(default=1, ge=1, description="页码。"),
    page_size: int = Query(default=20, ge=1, le=200, description="每页条数。"),
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    items, total = applications.list_app_users(db, app_id=app_id, page=page, page_size=page_size)
    return success(
        request,
        [user_view(user) for user in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.get(
    "/{app_id}/login-method",
    summary="查询登录方式",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[LoginMethodData],
    responses=_RESPONSES,
)
def get_login_method(
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    return success(request, {"app_id": app_id, "login_method": applications.get_login_method(db, app_id=app_id)})


@router.put(
    "/{app_id}/login-method",
    summary="设置登录方式",
    description="0 用户名密码，1 手机号验证码。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[LoginMethodData],
    responses=_RESPONSES,
)
def set_login_method(
    payload: LoginMethodUpdateRequest,
    request: Request,
    app_id: AppIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    login_method = applications.set_login_method(db, app_id=app_id, login_method=payload.login_method)
    return success(request, {"app_id": app_id, "login_method": login_method})
