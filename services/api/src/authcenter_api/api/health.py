"""健康检查接口。"""

from sqlalchemy import text
from sqlalchemy.orm import Session

from fastapi import APIRouter, Depends, Request, status

from authcenter_api.context import AppContext, get_app_context
from authcenter_api.db.session import get_db
from authcenter_api.utils.response import success
from authcenter_api.schemas.common import ErrorResponse, SuccessResponse
from authcenter_api.schemas.responses import HealthStatusData

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "/live",
    summary="存活探针",
    description="用于容器编排系统检测服务进程是否存活。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[HealthStatusData],
    responses={500: {"model": ErrorResponse}},
)
def live(request: Request):
    """仅表示进程存活，不校验外部依赖。"""
    return success(request, {"status": "ok"})


@router.get(
    "/ready",
    summary="就绪探针",
    description="检测数据库与 Redis 连通性，任一不可用返回 503。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[HealthStatusData],
    responses={503: {"model": ErrorResponse}},
)
def ready(
    request: Request,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    """执行轻量数据库探活语句并 ping 缓存。"""
    db.execute(text("select 1"))
    context.cache.ping()
    return success(request, {"status": "ready"})
