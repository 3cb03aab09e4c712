"""应用用户管理请求结构。"""

from pydantic import BaseModel, Field

from authcenter_api.schemas.common import PatchSchema, StatusValue


class UserCreateRequest(BaseModel):
    """创建用户请求体。"""

    username: str = Field(min_length=2, max_length=64, description="用户名，应用内唯一。", examples=["alice"])
    password: str = Field(min_length=6, max_length=128, description="登录密码。")
    email: str | None = Field(default=None, max_length=256, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="邮箱。")
    phone: str | None = Field(default=None, max_length=32, description="手机号。")
    is_super_admin: bool = Field(default=False, description="是否为应用内超级管理员。")


class UserUpdateRequest(PatchSchema):
    """更新用户请求体，所属应用不可修改。"""

    email: str | None = Field(default=None, max_length=256, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="邮箱，null 清空。")
    phone: str | None = Field(default=None, max_length=32, description="手机号，null 清空。")
    password: str | None = Field(default=None, min_length=6, max_length=128, description="新密码。")
    status: StatusValue | None = Field(default=None, description="用户状态。")
    is_super_admin: bool | None = Field(default=None, description="是否为应用内超级管理员。")


class UserRolesUpdateRequest(BaseModel):
    """整体替换用户角色集合。"""

    role_ids: list[int] = Field(default_factory=list, description="角色 ID 列表。", examples=[[1]])
