"""管理员两级授权。

系统管理员可操作任意应用，但必须显式指定目标应用；
应用管理员只能操作绑定应用，指定其他应用时直接拒绝。
判断先于任何应用范围内的查询执行。
"""

from authcenter_api.errors import ForbiddenError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType


def is_system_admin(admin: SystemAdmin) -> bool:
    return admin.admin_type == AdminType.SYSTEM


def resolve_admin_scope(admin: SystemAdmin, requested_app_id: str | None) -> str:
    """返回本次操作的目标应用标识，越权时抛出 `ForbiddenError`。"""
    requested = (requested_app_id or "").strip() or None

    if is_system_admin(admin):
        if requested is None:
            raise ForbiddenError("系统管理员需显式指定 app_id。", details={"reason": "app_id_required"})
        return requested

    if admin.admin_type != AdminType.APP or not admin.app_id:
        raise ForbiddenError(details={"reason": "admin_not_bound"})
    if requested is not None and requested != admin.app_id:
        raise ForbiddenError("无权操作其他应用。", details={"reason": "cross_app_access", "app_id": requested})
    return admin.app_id


def require_system_admin(admin: SystemAdmin) -> SystemAdmin:
    if not is_system_admin(admin):
        raise ForbiddenError("仅系统管理员可执行该操作。")
    return admin
