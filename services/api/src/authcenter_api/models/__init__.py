"""ORM 模型导出集合。"""

from authcenter_api.models.auth import SystemAdmin, TokenRecord
from authcenter_api.models.permission import ApiResource, Permission, Role, RolePermission, UserRole
from authcenter_api.models.tenant import Application, User

__all__ = [
    "ApiResource",
    "Application",
    "Permission",
    "Role",
    "RolePermission",
    "SystemAdmin",
    "TokenRecord",
    "User",
    "UserRole",
]
