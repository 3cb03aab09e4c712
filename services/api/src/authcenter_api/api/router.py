"""顶层路由注册。"""

from fastapi import APIRouter

from . import app_scope, auth, health, permissions, system, system_admins, tenants, users

api_router = APIRouter()

# 固定注册顺序，便于在线接口文档展示和问题定位。
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(permissions.router)
api_router.include_router(system.router)
api_router.include_router(tenants.router)
api_router.include_router(system_admins.router)
api_router.include_router(app_scope.router)
api_router.include_router(users.router)
