"""管理员相关请求结构。"""

from typing import Literal

from pydantic import BaseModel, Field

from authcenter_api.schemas.common import PatchSchema


class AdminLoginRequest(BaseModel):
    """管理员登录请求。"""

    username: str = Field(min_length=1, max_length=64, description="管理员用户名。", examples=["root"])
    password: str = Field(min_length=1, max_length=128, description="管理员密码。")


class AdminRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, description="管理员刷新令牌。")


class AdminLogoutRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="可选刷新令牌，提供时一并吊销。")


class AdminCreateRequest(BaseModel):
    """创建管理员请求（初始化注册共用）。"""

    username: str = Field(min_length=2, max_length=64, description="用户名，全系统唯一。", examples=["root"])
    password: str = Field(min_length=6, max_length=128, description="登录密码。")
    admin_type: Literal["system", "app"] = Field(default="system", description="管理员类型。")
    app_id: str | None = Field(default=None, max_length=64, description="应用管理员绑定的应用标识。")
    email: str | None = Field(
        default=None,
        max_length=256,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="可选邮箱。",
    )
    phone: str | None = Field(default=None, max_length=32, description="可选手机号。")


class AdminUpdateRequest(PatchSchema):
    """管理员补丁请求。"""

    email: str | None = Field(default=None, max_length=256, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="邮箱，null 清空。")
    phone: str | None = Field(default=None, max_length=32, description="手机号，null 清空。")
    is_active: bool | None = Field(default=None, description="是否启用。")


class AdminPasswordResetRequest(BaseModel):
    password: str = Field(min_length=6, max_length=128, description="新密码。")
