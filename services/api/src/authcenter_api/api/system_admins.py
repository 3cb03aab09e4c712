"""管理员账号管理接口，仅系统管理员可用。"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import admin_profile
from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import AdminContext, get_system_admin
from authcenter_api.schemas.admin import AdminCreateRequest, AdminPasswordResetRequest, AdminUpdateRequest
from authcenter_api.schemas.common import ErrorResponse, SuccessResponse
from authcenter_api.schemas.responses import AdminProfileData, DeletedData
from authcenter_api.services import system_admins
from authcenter_api.utils.pagination import pagination_meta
from authcenter_api.utils.response import success

router = APIRouter(prefix="/system-admins", tags=["system-admins"])

_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
AdminIdPath = Annotated[int, Path(ge=1, description="管理员 ID。")]


@router.get(
    "",
    summary="管理员列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[AdminProfileData]],
    responses=_RESPONSES,
)
def list_admins(
    request: Request,
    admin_type: Literal["system", "app"] | None = Query(default=None, description="按类型过滤。"),
    app_id: str | None = Query(default=None, description="按绑定应用过滤。"),
    page: int = Query(default=1, ge=1, description="页码。"),
    page_size: int = Query(default=20, ge=1, le=200, description="每页条数。"),
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    items, total = system_admins.list_admins(db, admin_type=admin_type, app_id=app_id, page=page, page_size=page_size)
    return success(
        request,
        [admin_profile(admin) for admin in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "",
    summary="创建管理员",
    description="应用管理员必须绑定可用应用，系统管理员不得绑定应用。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses={**_RESPONSES, 400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_admin(
    payload: AdminCreateRequest,
    request: Request,
    context: AppContext = Depends(get_app_context),
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    admin = system_admins.create_admin(
        db,
        passwords=context.passwords,
        username=payload.username,
        password=payload.password,
        admin_type=payload.admin_type,
        app_id=payload.app_id,
        email=payload.email,
        phone=payload.phone,
    )
    return success(request, admin_profile(admin))


@router.get(
    "/{admin_id}",
    summary="管理员详情",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses=_RESPONSES,
)
def get_admin(
    request: Request,
    admin_id: AdminIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    return success(request, admin_profile(system_admins.get_admin(db, admin_id)))


@router.patch(
    "/{admin_id}",
    summary="更新管理员",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def update_admin(
    payload: AdminUpdateRequest,
    request: Request,
    admin_id: AdminIdPath,
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    admin = system_admins.update_admin(db, admin_id=admin_id, changes=payload.changes())
    return success(request, admin_profile(admin))


@router.delete(
    "/{admin_id}",
    summary="删除管理员",
    description="软删除，不能删除当前登录的管理员。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_admin(
    request: Request,
    admin_id: AdminIdPath,
    current: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    system_admins.delete_admin(db, admin_id=admin_id, actor_id=current.admin.id)
    return success(request, {"deleted": True})


@router.post(
    "/{admin_id}/reset-password",
    summary="重置管理员密码",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AdminProfileData],
    responses=_RESPONSES,
)
def reset_password(
    payload: AdminPasswordResetRequest,
    request: Request,
    admin_id: AdminIdPath,
    context: AppContext = Depends(get_app_context),
    _: AdminContext = Depends(get_system_admin),
    db: Session = Depends(get_db),
):
    system_admins.reset_admin_password(
        db, passwords=context.passwords, admin_id=admin_id, password=payload.password
    )
    return success(request, admin_profile(system_admins.get_admin(db, admin_id)))
