"""路由模块导出集合。"""

from . import app_scope, auth, health, permissions, system, system_admins, tenants, users

__all__ = [
    "app_scope",
    "auth",
    "health",
    "permissions",
    "system",
    "system_admins",
    "tenants",
    "users",
]
