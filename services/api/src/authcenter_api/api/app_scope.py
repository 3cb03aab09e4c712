"""应用范围内的角色、权限与接口管理。

系统管理员必须通过 `?app_id=` 指定目标应用；应用管理员默认作用于绑定应用，
指定其他应用时返回 403。
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import api_view, app_view, permission_view, role_view
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import AdminScope, get_admin_scope
from authcenter_api.schemas.common import ErrorResponse, StatusValue, SuccessResponse
from authcenter_api.schemas.permission import (
    ApiCreateRequest,
    ApiUpdateRequest,
    PermissionCreateRequest,
    PermissionUpdateRequest,
    RoleCreateRequest,
    RolePermissionsUpdateRequest,
    RoleUpdateRequest,
)
from authcenter_api.schemas.responses import ApiData, AppData, DeletedData, IdListData, PermissionData, RoleData
from authcenter_api.services import applications, resources
from authcenter_api.utils.pagination import pagination_meta
from authcenter_api.utils.response import success

router = APIRouter(prefix="/app", tags=["app"])

_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
IdPath = Annotated[int, Path(ge=1, description="资源 ID。")]
PageQuery = Annotated[int, Query(ge=1, description="页码。")]
PageSizeQuery = Annotated[int, Query(ge=1, le=200, description="每页条数。")]
StatusQuery = Annotated[StatusValue | None, Query(alias="status", description="按状态过滤。")]


@router.get(
    "/self",
    summary="当前应用信息",
    description="应用管理员查看所绑定应用，不含密钥。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AppData],
    responses=_RESPONSES,
)
def get_self_app(
    request: Request,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    return success(request, app_view(applications.get_app(db, scope.app_id)))


# ---- 角色 ----


@router.get(
    "/roles",
    summary="角色列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[RoleData]],
    responses=_RESPONSES,
)
def list_roles(
    request: Request,
    page: PageQuery = 1,
    page_size: PageSizeQuery = 20,
    item_status: StatusQuery = None,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    items, total = resources.list_roles(db, app_id=scope.app_id, page=page, page_size=page_size, status=item_status)
    return success(
        request,
        [role_view(role) for role in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "/roles",
    summary="创建角色",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[RoleData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def create_role(
    payload: RoleCreateRequest,
    request: Request,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    role = resources.create_role(
        db,
        app_id=scope.app_id,
        name=payload.name,
        code=payload.code,
        description=payload.description,
    )
    return success(request, role_view(role))


@router.patch(
    "/roles/{role_id}",
    summary="更新角色",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[RoleData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def update_role(
    payload: RoleUpdateRequest,
    request: Request,
    role_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    role = resources.update_role(db, app_id=scope.app_id, role_id=role_id, changes=payload.changes())
    return success(request, role_view(role))


@router.delete(
    "/roles/{role_id}",
    summary="删除角色",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_role(
    request: Request,
    role_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    resources.delete_role(db, app_id=scope.app_id, role_id=role_id)
    return success(request, {"deleted": True})


@router.get(
    "/roles/{role_id}/permissions",
    summary="角色权限 ID 集合",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[IdListData],
    responses=_RESPONSES,
)
def get_role_permissions(
    request: Request,
    role_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    ids = resources.get_role_permission_ids(db, app_id=scope.app_id, role_id=role_id)
    return success(request, {"ids": ids})


@router.put(
    "/roles/{role_id}/permissions",
    summary="替换角色权限",
    description="整体替换角色权限集合，权限须属于同一应用。缓存按 TTL 自然过期。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[IdListData],
    responses=_RESPONSES,
)
def set_role_permissions(
    payload: RolePermissionsUpdateRequest,
    request: Request,
    role_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    ids = resources.set_role_permissions(db, app_id=scope.app_id, role_id=role_id, permission_ids=payload.permission_ids)
    return success(request, {"ids": ids})


# ---- 权限 ----


@router.get(
    "/permissions",
    summary="权限列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[PermissionData]],
    responses=_RESPONSES,
)
def list_permissions(
    request: Request,
    page: PageQuery = 1,
    page_size: PageSizeQuery = 20,
    item_status: StatusQuery = None,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    items, total = resources.list_permissions(
        db, app_id=scope.app_id, page=page, page_size=page_size, status=item_status
    )
    return success(
        request,
        [permission_view(permission) for permission in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "/permissions",
    summary="创建权限",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[PermissionData],
    responses=_RESPONSES,
)
def create_permission(
    payload: PermissionCreateRequest,
    request: Request,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    permission = resources.create_permission(
        db,
        app_id=scope.app_id,
        name=payload.name,
        code=payload.code,
        resource=payload.resource,
        action=payload.action,
        description=payload.description,
    )
    return success(request, permission_view(permission))


@router.patch(
    "/permissions/{permission_id}",
    summary="更新权限",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[PermissionData],
    responses=_RESPONSES,
)
def update_permission(
    payload: PermissionUpdateRequest,
    request: Request,
    permission_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    permission = resources.update_permission(
        db, app_id=scope.app_id, permission_id=permission_id, changes=payload.changes()
    )
    return success(request, permission_view(permission))


@router.delete(
    "/permissions/{permission_id}",
    summary="删除权限",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_permission(
    request: Request,
    permission_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    resources.delete_permission(db, app_id=scope.app_id, permission_id=permission_id)
    return success(request, {"deleted": True})


# ---- 接口 ----


@router.get(
    "/apis",
    summary="接口列表",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[ApiData]],
    responses=_RESPONSES,
)
def list_apis(
    request: Request,
    page: PageQuery = 1,
    page_size: PageSizeQuery = 20,
    item_status: StatusQuery = None,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    items, total = resources.list_apis(db, app_id=scope.app_id, page=page, page_size=page_size, status=item_status)
    return success(
        request,
        [api_view(api) for api in items],
        meta=pagination_meta(page=page, page_size=page_size, total=total),
    )


@router.post(
    "/apis",
    summary="创建接口",
    description="(path, method) 在应用内唯一，method 统一转为大写，绑定权限须属于同一应用。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[ApiData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def create_api(
    payload: ApiCreateRequest,
    request: Request,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    api = resources.create_api(
        db,
        app_id=scope.app_id,
        path=payload.path,
        method=payload.method,
        permission_id=payload.permission_id,
        description=payload.description,
    )
    return success(request, api_view(api))


@router.patch(
    "/apis/{api_id}",
    summary="更新接口",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[ApiData],
    responses={**_RESPONSES, 409: {"model": ErrorResponse}},
)
def update_api(
    payload: ApiUpdateRequest,
    request: Request,
    api_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    api = resources.update_api(db, app_id=scope.app_id, api_id=api_id, changes=payload.changes())
    return success(request, api_view(api))


@router.delete(
    "/apis/{api_id}",
    summary="删除接口",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[DeletedData],
    responses=_RESPONSES,
)
def delete_api(
    request: Request,
    api_id: IdPath,
    scope: AdminScope = Depends(get_admin_scope),
    db: Session = Depends(get_db),
):
    resources.delete_api(db, app_id=scope.app_id, api_id=api_id)
    return success(request, {"deleted": True})
