"""ORM 对象到响应数据的转换。"""

from typing import Any

from authcenter_api.core.security import IssuedToken
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.permission import ApiResource, Permission, Role
from authcenter_api.models.tenant import Application, User
from authcenter_api.schemas.responses import (
    AdminProfileData,
    ApiData,
    AppData,
    AppSecretData,
    PermissionData,
    RoleData,
    RoleSummary,
    UserData,
    UserProfileData,
)


def role_summary(role: Role) -> dict[str, Any]:
    return RoleSummary.model_validate(role).model_dump()


def user_profile(user: User, roles: list[Role]) -> dict[str, Any]:
    profile = UserProfileData.model_validate(
        {
            "id": user.id,
            "app_id": user.app_id,
            "username": user.username,
            "email": user.email,
            "phone": user.phone,
            "is_super_admin": user.is_super_admin,
            "status": user.status,
            "roles": [role_summary(role) for role in roles],
        }
    )
    return profile.model_dump()


def token_pair(access: IssuedToken, refresh: IssuedToken) -> dict[str, Any]:
    return {
        "access_token": access.token,
        "refresh_token": refresh.token,
        "token_type": "bearer",
        "expires_at": access.expires_at,
        "expires_in": access.expires_in,
        "refresh_expires_at": refresh.expires_at,
    }


def admin_profile(admin: SystemAdmin) -> dict[str, Any]:
    return AdminProfileData.model_validate(admin).model_dump()


def app_view(app: Application, *, with_secret: bool = False) -> dict[str, Any]:
    if with_secret:
        return AppSecretData.model_validate(app).model_dump()
    return AppData.model_validate(app).model_dump()


def role_view(role: Role) -> dict[str, Any]:
    return RoleData.model_validate(role).model_dump()


def permission_view(permission: Permission) -> dict[str, Any]:
    return PermissionData.model_validate(permission).model_dump()


def api_view(api: ApiResource) -> dict[str, Any]:
    return ApiData.model_validate(api).model_dump()


def user_view(user: User) -> dict[str, Any]:
    return UserData.model_validate(user).model_dump()
