"""应用异常处理注册。"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from authcenter_api.errors import AuthCenterError, TransientError
from authcenter_api.utils.response import DEFAULT_ERROR_MESSAGE, error_response

logger = logging.getLogger("authcenter_api.exceptions")

_UNPROCESSABLE = 422

_HTTP_DEFAULTS: dict[int, tuple[str, str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("BAD_REQUEST", "请求参数不合法。", "请检查请求参数后重试。"),
    status.HTTP_401_UNAUTHORIZED: ("UNAUTHORIZED", "未登录或登录状态已失效。", "请重新登录并携带有效访问令牌。"),
    status.HTTP_403_FORBIDDEN: ("FORBIDDEN", "无权限访问该资源。", "请确认当前账号类型及目标应用是否正确。"),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "请求资源不存在。", "请确认资源 ID 是否正确，或资源是否已被删除。"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "请求方法不被允许。", "请确认接口文档中的请求方法。"),
    status.HTTP_409_CONFLICT: ("CONFLICT", "请求与当前数据状态冲突。", "请刷新数据后重试。"),
    _UNPROCESSABLE: ("VALIDATION_ERROR", "请求参数校验失败。", "请根据错误字段提示修正请求参数后重试。"),
    status.HTTP_503_SERVICE_UNAVAILABLE: ("TRANSIENT_FAILURE", "依赖服务暂时不可用。", "请稍后重试。"),
}
_FALLBACK_SUGGESTION = "请稍后重试，若持续失败请联系管理员。"


def _parse_http_detail(detail: object, status_code: int) -> tuple[str, str, dict[str, object]]:
    code, message, suggestion = _HTTP_DEFAULTS.get(status_code, ("HTTP_ERROR", "请求处理失败。", _FALLBACK_SUGGESTION))
    details: dict[str, object] = {
        "status_code": status_code,
        "reason": code.lower(),
        "suggestion": suggestion,
    }

    if isinstance(detail, dict):
        code = str(detail.get("code") or code)
        message = str(detail.get("message") or detail.get("detail") or message)
        raw_details = detail.get("details")
        if isinstance(raw_details, dict):
            details.update(raw_details)
        elif raw_details is not None:
            details["details"] = raw_details
        return code, message, details

    if isinstance(detail, str) and detail.strip():
        return code, detail, details

    if detail is not None:
        details["detail"] = detail
    return code, message, details


def _default_error(request: Request, status_code: int, reason: str, **extra: object):
    code, message, suggestion = _HTTP_DEFAULTS[status_code]
    details: dict[str, object] = {"status_code": status_code, "reason": reason, "suggestion": suggestion}
    details.update(extra)
    return error_response(request, status_code=status_code, code=code, message=message, details=details)


async def auth_center_error_handler(request: Request, exc: AuthCenterError):
    """领域异常按其状态码与错误码输出。"""
    if isinstance(exc, TransientError):
        logger.warning("transient failure path=%s message=%s", request.url.path, exc.message)
    details: dict[str, object] = {"status_code": exc.status_code, "reason": exc.code.lower()}
    details.update(exc.details)
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=details,
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """将协议异常统一包装为标准错误结构。"""
    code, message, details = _parse_http_detail(exc.detail, exc.status_code)
    return error_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """统一处理请求参数校验错误。"""
    normalized_errors = [
        {
            "field": ".".join(str(item) for item in err.get("loc", []) if item != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return _default_error(request, _UNPROCESSABLE, "validation_error", errors=normalized_errors)


async def database_unavailable_handler(request: Request, exc: OperationalError | PoolTimeoutError):
    """数据库连接失败、语句超时或连接池等待超时按可重试错误返回。"""
    logger.warning("database unavailable path=%s err=%s", request.url.path, getattr(exc, "orig", None) or exc)
    return _default_error(request, status.HTTP_503_SERVICE_UNAVAILABLE, "database_unavailable")


async def integrity_conflict_handler(request: Request, exc: IntegrityError):
    """未经服务层转换的唯一约束冲突按 409 返回。"""
    logger.warning("integrity conflict path=%s err=%s", request.url.path, exc.orig)
    return _default_error(request, status.HTTP_409_CONFLICT, "integrity_conflict")


async def unexpected_exception_handler(request: Request, exc: Exception):
    """处理未捕获异常，避免内部细节泄露。"""
    logger.exception("unexpected error path=%s", request.url.path)
    return error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message=DEFAULT_ERROR_MESSAGE,
        details={
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "reason": "unexpected_exception",
            "suggestion": "请稍后重试，若持续失败请联系管理员并提供 request_id。",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """集中注册异常处理器。"""
    app.exception_handler(AuthCenterError)(auth_center_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(OperationalError)(database_unavailable_handler)
    app.exception_handler(PoolTimeoutError)(database_unavailable_handler)
    app.exception_handler(IntegrityError)(integrity_conflict_handler)
    app.exception_handler(Exception)(unexpected_exception_handler)
