"""接口成功响应 `data` 字段结构定义。

说明：
1. 所有业务接口统一返回 `SuccessResponse[data=...]`。
2. 本文件专注于定义各接口在 `data` 中的业务字段。
3. 字段描述会直接用于 Swagger 展示，便于联调时理解含义。
"""

from datetime import datetime

from pydantic import Field

from authcenter_api.schemas.common import BaseSchema


class HealthStatusData(BaseSchema):
    """健康检查返回结构。"""

    status: str = Field(description="健康状态值，常见为 ok 或 ready。")


class RoleSummary(BaseSchema):
    """角色摘要。"""

    id: int = Field(description="角色 ID。")
    name: str = Field(description="角色名称。")
    code: str = Field(description="角色编码。")


class UserProfileData(BaseSchema):
    """终端用户资料。"""

    id: int = Field(description="用户 ID。")
    app_id: str = Field(description="所属应用标识。")
    username: str = Field(description="用户名。")
    email: str | None = Field(default=None, description="邮箱。")
    phone: str | None = Field(default=None, description="手机号。")
    is_super_admin: bool = Field(description="是否为应用内超级管理员。")
    status: str = Field(description="用户状态。")
    roles: list[RoleSummary] = Field(default_factory=list, description="当前有效角色。")


class TokenPairData(BaseSchema):
    """令牌对。"""

    access_token: str = Field(description="访问令牌。")
    refresh_token: str = Field(description="刷新令牌。")
    token_type: str = Field(default="bearer", description="令牌类型。")
    expires_at: datetime = Field(description="访问令牌过期时间（UTC）。")
    expires_in: int = Field(description="访问令牌有效期（秒）。")
    refresh_expires_at: datetime = Field(description="刷新令牌过期时间（UTC）。")


class AuthLoginData(TokenPairData):
    """用户登录/刷新结果。"""

    user: UserProfileData = Field(description="当前用户资料。")


class AuthLogoutData(BaseSchema):
    """登出结果。"""

    logged_out: bool = Field(description="是否已完成登出。")
    revoked_refresh: bool = Field(description="刷新令牌是否一并吊销。")


class LoginCodeData(BaseSchema):
    """验证码签发结果，由应用后端负责下发给用户。"""

    phone: str = Field(description="手机号。")
    code: str = Field(description="一次性验证码。")
    expires_in: int = Field(description="有效期（秒）。")


class PermissionCheckData(BaseSchema):
    """权限判断结果。"""

    allowed: bool = Field(description="是否允许。")


class PermissionCodesData(BaseSchema):
    """用户权限编码集合。"""

    permission_codes: list[str] = Field(description="权限编码列表（已排序）。")


class UserRolesData(BaseSchema):
    """用户角色列表。"""

    roles: list[RoleSummary] = Field(description="当前有效角色。")


class AdminProfileData(BaseSchema):
    """管理员资料。"""

    id: int = Field(description="管理员 ID。")
    username: str = Field(description="用户名。")
    email: str | None = Field(default=None, description="邮箱。")
    phone: str | None = Field(default=None, description="手机号。")
    admin_type: str = Field(description="管理员类型（system/app）。")
    app_id: str | None = Field(default=None, description="绑定应用标识。")
    is_active: bool = Field(description="是否启用。")
    last_login_at: datetime | None = Field(default=None, description="最近登录时间。")


class AdminLoginData(TokenPairData):
    """管理员登录/刷新结果。"""

    admin: AdminProfileData = Field(description="管理员资料。")


class AppData(BaseSchema):
    """应用视图，不含密钥。"""

    id: int = Field(description="内部主键。")
    app_id: str = Field(description="应用标识。")
    name: str = Field(description="应用名称。")
    description: str | None = Field(default=None, description="应用描述。")
    status: str = Field(description="应用状态。")
    login_method: int = Field(description="登录方式：0 密码，1 验证码。")
    created_at: datetime | None = Field(default=None, description="创建时间。")


class AppSecretData(AppData):
    """含密钥的应用视图，仅在创建与轮换密钥时返回。"""

    app_secret: str = Field(description="应用密钥。")


class LoginMethodData(BaseSchema):
    app_id: str = Field(description="应用标识。")
    login_method: int = Field(description="登录方式：0 密码，1 验证码。")


class RoleData(BaseSchema):
    id: int = Field(description="角色 ID。")
    app_id: str = Field(description="所属应用标识。")
    name: str = Field(description="角色名称。")
    code: str = Field(description="角色编码。")
    description: str | None = Field(default=None, description="角色描述。")
    status: str = Field(description="角色状态。")


class PermissionData(BaseSchema):
    id: int = Field(description="权限 ID。")
    app_id: str = Field(description="所属应用标识。")
    name: str = Field(description="权限名称。")
    code: str = Field(description="权限编码。")
    resource: str = Field(description="资源类型。")
    action: str = Field(description="动作。")
    description: str | None = Field(default=None, description="权限描述。")
    status: str = Field(description="权限状态。")


class ApiData(BaseSchema):
    id: int = Field(description="接口 ID。")
    app_id: str = Field(description="所属应用标识。")
    path: str = Field(description="接口路径。")
    method: str = Field(description="HTTP 方法。")
    permission_id: int = Field(description="绑定权限 ID。")
    description: str | None = Field(default=None, description="接口描述。")
    status: str = Field(description="接口状态。")


class UserData(BaseSchema):
    id: int = Field(description="用户 ID。")
    app_id: str = Field(description="所属应用标识。")
    username: str = Field(description="用户名。")
    email: str | None = Field(default=None, description="邮箱。")
    phone: str | None = Field(default=None, description="手机号。")
    is_super_admin: bool = Field(description="是否为应用内超级管理员。")
    status: str = Field(description="用户状态。")
    last_login_at: datetime | None = Field(default=None, description="最近登录时间。")


class IdListData(BaseSchema):
    """关联 ID 集合。"""

    ids: list[int] = Field(description="ID 列表（升序）。")


class DeletedData(BaseSchema):
    deleted: bool = Field(description="是否已删除。")
