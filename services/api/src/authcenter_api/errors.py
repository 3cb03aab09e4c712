"""领域异常定义。

服务层只抛出本模块异常，由 `exceptions.register_exception_handlers` 统一映射为
`{request_id, error: {code, message, details}}` 错误结构。
"""

from typing import Any

from fastapi import status


class AuthCenterError(Exception):
    """认证中心业务异常基类。"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "请求参数不合法。"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if code is not None:
            self.code = code
        self.details = details or {}


class BadRequestError(AuthCenterError):
    """请求语义不合法（400）。"""


class InvalidCredentialsError(AuthCenterError):
    """账号、密码、验证码或租户凭据不匹配（401）。"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_message = "账号或凭据错误。"


class InvalidTokenError(AuthCenterError):
    """令牌结构、签名、过期或吊销校验失败（401）。"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"
    default_message = "未登录或登录状态已失效。"


class TenantUnavailableError(AuthCenterError):
    """租户不存在、已删除或已禁用（403）。"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "TENANT_UNAVAILABLE"
    default_message = "应用不存在或已被禁用。"


class ForbiddenError(AuthCenterError):
    """无权访问目标资源（403）。"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "无权限访问该资源。"


class NotFoundError(AuthCenterError):
    """资源不存在（404）。"""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "请求资源不存在。"


class ConflictError(AuthCenterError):
    """唯一性冲突（409）。"""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "请求与当前数据状态冲突。"


class TransientError(AuthCenterError):
    """数据库或缓存暂时不可用（503），调用方可重试。"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "TRANSIENT_FAILURE"
    default_message = "依赖服务暂时不可用，请稍后重试。"
