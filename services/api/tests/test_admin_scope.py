import pytest

from authcenter_api.errors import ForbiddenError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType
from authcenter_api.services.admin_scope import require_system_admin, resolve_admin_scope


def _admin(admin_type: str, app_id: str | None = None) -> SystemAdmin:
    return SystemAdmin(username="someone", password_hash="x", admin_type=admin_type, app_id=app_id, is_active=True)


def test_app_admin_defaults_to_bound_app():
    admin = _admin(AdminType.APP, "t1")

    assert resolve_admin_scope(admin, None) == "t1"
    assert resolve_admin_scope(admin, "t1") == "t1"


def test_app_admin_cannot_reach_other_app():
    with pytest.raises(ForbiddenError) as exc_info:
        resolve_admin_scope(_admin(AdminType.APP, "t1"), "t2")

    assert exc_info.value.details["reason"] == "cross_app_access"


def test_unbound_app_admin_is_rejected():
    with pytest.raises(ForbiddenError):
        resolve_admin_scope(_admin(AdminType.APP, None), None)


def test_system_admin_must_name_target_app():
    admin = _admin(AdminType.SYSTEM)

    assert resolve_admin_scope(admin, "t2") == "t2"
    for requested in (None, "", "   "):
        with pytest.raises(ForbiddenError):
            resolve_admin_scope(admin, requested)


def test_require_system_admin():
    system_admin = _admin(AdminType.SYSTEM)
    assert require_system_admin(system_admin) is system_admin

    with pytest.raises(ForbiddenError):
        require_system_admin(_admin(AdminType.APP, "t1"))
