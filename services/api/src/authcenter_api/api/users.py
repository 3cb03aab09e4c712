"""应用范围内的用户管理接口。"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import user_view
from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import AdminScope, get_admin_scope
from authcenter_api.schemas.common import ErrorResponse, StatusValue, SuccessResponse
from authcenter_api.schemas.responses import DeletedData, IdListData, UserData
from authcenter_api.schemas.user import UserCreateRequest, UserRolesUpdateRequest, UserUpdateRequest
from authcenter_api.services import resources
from authcenter_api.utils.pagination import pagination_meta
from authcenter_api.utils.response import success

router = APIRouter(prefix="/app/users", tags=["users"])

_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
UserIdPath = Annotated[int, Path(ge=1, description="用户 ID。")]


@router.get(
    "",
    summary="用户列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[UserData]],
    responses=_RESPONSES,
)
def list_users(
    request: Request,
    page: int = Query(default=1, ge=1, description="页码。"),
    page_size: int = Query(default=20, ge=1, le=200, description="每页条数。"),
    user_status: StatusValue | None = Query(default=None, alias="status", description="按状态过滤。"),
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    items, total = resources.list_users(db, app_id=scope.app_id, page=page, page_size=page_size, status=user_status)
    return success(
        request,
        [user_view(user) for user in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "",
    summary="创建用户",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def create_user(
    payload: UserCreateRequest,
    request: Request,
    context: AppContext = Depends(get_app_context),
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    user = resources.create_user(
        db,
        passwords=context.passwords,
        app_id=scope.app_id,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        phone=payload.phone,
        is_super_admin=payload.is_super_admin,
    )
    return success(request, user_view(user))


@router.get(
    "/{user_id}",
    summary="用户详情",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserData],
    responses=_RESPONSES,
)
def get_user(
    request: Request,
    user_id: UserIdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    return success(request, user_view(resources.get_user(db, app_id=scope.app_id, user_id=user_id)))


@router.patch(
    "/{user_id}",
    summary="更新用户",
    description="仅更新请求中出现的字段；email/phone 传 null 表示清空；所属应用不可修改。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def update_user(
    payload: UserUpdateRequest,
    request: Request,
    user_id: UserIdPath,
    context: AppContext = Depends(get_app_context),
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    user = resources.update_user(
        db,
        passwords=context.passwords,
        app_id=scope.app_id,
        user_id=user_id,
        changes=payload.changes(),
    )
    return success(request, user_view(user))


@router.delete(
    "/{user_id}",
    summary="删除用户",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_user(
    request: Request,
    user_id: UserIdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    resources.delete_user(db, app_id=scope.app_id, user_id=user_id)
    return success(request, {"deleted": True})


@router.get(
    "/{user_id}/roles",
    summary="用户角色 ID 集合",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[IdListData],
    responses=_RESPONSES,
)
def get_user_roles(
    request: Request,
    user_id: UserIdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    return success(request, {"ids": resources.get_user_role_ids(db, app_id=scope.app_id, user_id=user_id)})


@router.put(
    "/{user_id}/roles",
    summary="替换用户角色",
    description="整体替换用户角色集合，角色须属于同一应用。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[IdListData],
    responses=_RESPONSES,
)
def set_user_roles(
    payload: UserRolesUpdateRequest,
    request: Request,
    user_id: UserIdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    ids = resources.set_user_roles(db, app_id=scope.app_id, user_id=user_id, role_ids=payload.role_ids)
    return success(request, {"ids": ids})
