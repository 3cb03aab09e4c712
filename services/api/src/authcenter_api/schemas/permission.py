"""角色、权限与接口资源请求结构。"""

from pydantic import BaseModel, Field

from authcenter_api.schemas.common import PatchSchema, StatusValue

_METHOD_PATTERN = r"^(?i:get|post|put|patch|delete|head|options)$"


class RoleCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64, description="角色名称。", examples=["编辑"])
    code: str = Field(min_length=1, max_length=64, description="角色编码，应用内唯一。", examples=["editor"])
    description: str | None = Field(default=None, max_length=1024, description="角色描述。")


class RoleUpdateRequest(PatchSchema):
    name: str | None = Field(default=None, min_length=1, max_length=64, description="角色名称。")
    code: str | None = Field(default=None, min_length=1, max_length=64, description="角色编码。")
    description: str | None = Field(default=None, max_length=1024, description="角色描述，null 清空。")
    status: StatusValue | None = Field(default=None, description="角色状态。")


class RolePermissionsUpdateRequest(BaseModel):
    """整体替换角色权限集合。"""

    permission_ids: list[int] = Field(default_factory=list, description="权限 ID 列表。", examples=[[1, 2]])


class PermissionCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64, description="权限名称。", examples=["编辑文档"])
    code: str = Field(min_length=1, max_length=128, description="权限编码，可重复。", examples=["doc:write"])
    resource: str = Field(min_length=1, max_length=64, description="资源类型。", examples=["doc"])
    action: str = Field(min_length=1, max_length=64, description="动作。", examples=["write"])
    description: str | None = Field(default=None, max_length=1024, description="权限描述。")


class PermissionUpdateRequest(PatchSchema):
    name: str | None = Field(default=None, min_length=1, max_length=64, description="权限名称。")
    code: str | None = Field(default=None, min_length=1, max_length=128, description="权限编码。")
    resource: str | None = Field(default=None, min_length=1, max_length=64, description="资源类型。")
    action: str | None = Field(default=None, min_length=1, max_length=64, description="动作。")
    description: str | None = Field(default=None, max_length=1024, description="权限描述，null 清空。")
    status: StatusValue | None = Field(default=None, description="权限状态。")


class ApiCreateRequest(BaseModel):
    path: str = Field(min_length=1, max_length=256, description="接口路径。", examples=["/reports"])
    method: str = Field(pattern=_METHOD_PATTERN, description="HTTP 方法，统一转为大写存储。", examples=["GET"])
    permission_id: int = Field(ge=1, description="绑定的权限 ID，须属于同一应用。")
    description: str | None = Field(default=None, max_length=1024, description="接口描述。")


class ApiUpdateRequest(PatchSchema):
    path: str | None = Field(default=None, min_length=1, max_length=256, description="接口路径。")
    method: str | None = Field(default=None, pattern=_METHOD_PATTERN, description="HTTP 方法。")
    permission_id: int | None = Field(default=None, ge=1, description="绑定的权限 ID。")
    description: str | None = Field(default=None, max_length=1024, description="接口描述，null 清空。")
    status: StatusValue | None = Field(default=None, description="接口状态。")
