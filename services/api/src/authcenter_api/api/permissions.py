"""运行时权限查询接口（无副作用，供业务后端与前端鉴权使用）。"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from authcenter_api.api.views import role_summary
from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.dependencies import CurrentPrincipal, get_current_principal
from authcenter_api.schemas.common import ErrorResponse, SuccessResponse
from authcenter_api.schemas.responses import PermissionCheckData, PermissionCodesData, UserRolesData
from authcenter_api.services.permissions import PermissionResolver
from authcenter_api.utils.response import success

router = APIRouter(prefix="/permissions", tags=["permissions"])

_RESPONSES = {401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}


def _resolver(db: Session, context: AppContext) -> PermissionResolver:
    return PermissionResolver(db, context.cache, context.settings)


@router.get(
    "/check",
    summary="权限编码判断",
    description="判断当前用户是否持有指定权限编码（精确匹配）。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[PermissionCheckData],
    responses=_RESPONSES,
)
def check_permission(
    request: Request,
    code: str = Query(min_length=1, max_length=128, description="权限编码。", examples=["doc:write"]),
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    allowed = _resolver(db, context).check_user_permission(principal.user_id, principal.app_id, code)
    return success(request, {"allowed": allowed})


@router.get(
    "/check-api",
    summary="接口权限判断",
    description="判断当前用户是否可调用指定接口（path + method）。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[PermissionCheckData],
    responses=_RESPONSES,
)
def check_api_permission(
    request: Request,
    path: str = Query(min_length=1, max_length=256, description="接口路径。", examples=["/reports"]),
    method: str = Query(min_length=1, max_length=16, description="HTTP 方法。", examples=["GET"]),
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    allowed = _resolver(db, context).check_api_permission(principal.user_id, principal.app_id, path, method)
    return success(request, {"allowed": allowed})


@router.get(
    "/user",
    summary="当前用户权限编码",
    description="返回当前用户全部权限编码。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[PermissionCodesData],
    responses=_RESPONSES,
)
def list_user_permissions(
    request: Request,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    codes = _resolver(db, context).user_permission_codes(principal.user_id, principal.app_id)
    return success(request, {"permission_codes": sorted(codes)})


@router.get(
    "/roles",
    summary="当前用户角色",
    description="返回当前用户的有效角色（已禁用或已删除角色不返回）。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserRolesData],
    responses=_RESPONSES,
)
def list_user_roles(
    request: Request,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    roles = _resolver(db, context).user_roles(principal.user_id, principal.app_id)
    return success(request, {"roles": [role_summary(role) for role in roles]})
