"""统一响应信封。

成功：`{request_id, data, meta}`；失败：`{request_id, error: {code, message, details}}`。
401 响应附带 `WWW-Authenticate: Bearer` 质询，503 响应附带 `Retry-After`，
便于租户后端区分“重新登录”与“稍后重试”。
"""

from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

DEFAULT_ERROR_MESSAGE = "服务内部错误。"
BEARER_REALM = "auth-center"
RETRY_AFTER_SECONDS = 1


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _elapsed_ms(request: Request) -> int | None:
    started_at = getattr(request.state, "request_started_at", None)
    if not isinstance(started_at, float):
        return None
    return int((perf_counter() - started_at) * 1000)


def success(request: Request, data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """构造成功信封，`meta` 中的分页等扩展信息覆盖默认字段。"""
    final_meta: dict[str, Any] = {
        "method": request.method.upper(),
        "path": request.url.path,
        "timestamp": _utc_now_iso(),
        "process_ms": _elapsed_ms(request),
    }
    if meta:
        final_meta.update(meta)
    return {"request_id": _request_id(request), "data": data, "meta": final_meta}


def error_payload(
    request: Request,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    final_details: dict[str, Any] = {
        "method": request.method.upper(),
        "path": request.url.path,
        "timestamp": _utc_now_iso(),
    }
    if details:
        final_details.update(details)
    return {
        "request_id": _request_id(request),
        "error": {"code": code, "message": message, "details": final_details},
    }


def _challenge_headers(status_code: int, code: str) -> dict[str, str]:
    if status_code == status.HTTP_401_UNAUTHORIZED:
        challenge = f'Bearer realm="{BEARER_REALM}"'
        if code == "INVALID_TOKEN":
            challenge += ', error="invalid_token"'
        return {"WWW-Authenticate": challenge}
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        return {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return {}


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """构造错误响应，按状态码补充认证质询或重试提示头，显式传入的头优先。"""
    final_headers = _challenge_headers(status_code, code)
    if headers:
        final_headers.update(headers)
    return JSONResponse(
        status_code=status_code,
        content=error_payload(request, code=code, message=message, details=details),
        headers=final_headers or None,
    )
