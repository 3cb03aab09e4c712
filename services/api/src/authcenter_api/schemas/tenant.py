"""应用（租户）相关请求结构。"""

from typing import Literal

from pydantic import BaseModel, Field

from authcenter_api.schemas.common import PatchSchema, StatusValue


class AppCreateRequest(BaseModel):
    """创建应用请求体。"""

    name: str = Field(min_length=2, max_length=128, description="应用展示名称。", examples=["研发中心"])
    description: str | None = Field(default=None, max_length=1024, description="应用描述。")


class AppUpdateRequest(PatchSchema):
    """更新应用请求体，description 传 null 表示清空。"""

    name: str | None = Field(default=None, min_length=2, max_length=128, description="应用展示名称。")
    description: str | None = Field(default=None, max_length=1024, description="应用描述。")
    status: StatusValue | None = Field(default=None, description="应用状态。")


class LoginMethodUpdateRequest(BaseModel):
    """登录方式设置请求体。"""

    login_method: Literal[0, 1] = Field(description="登录方式：0 密码，1 验证码。", examples=[0])
