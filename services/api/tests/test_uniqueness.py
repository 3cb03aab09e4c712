from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from authcenter_api.errors import ConflictError
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType
from authcenter_api.models.tenant import User
from authcenter_api.services import admin_auth, directory, resources, system_admins

from conftest import DEFAULT_PASSWORD


def _user_count(db, app_id: str, username: str) -> int:
    stmt = select(func.count(User.id)).where(User.app_id == app_id).where(User.username == username)
    return db.execute(stmt).scalar_one()


def test_active_usernames_are_unique_per_tenant(db, seed):
    seed.app("t1")
    seed.user("t1", "alice")

    with pytest.raises(IntegrityError):
        seed.user("t1", "alice")
    db.rollback()

    seed.user("t2", "alice")
    assert _user_count(db, "t1", "alice") == 1


def test_soft_deleted_user_releases_username(db, seed):
    seed.app("t1")
    old = seed.user("t1", "alice")
    old.deleted_at = datetime.now(timezone.utc)
    db.commit()

    seed.user("t1", "alice")

    assert _user_count(db, "t1", "alice") == 2


def test_admin_usernames_are_unique(context, db, seed):
    seed.admin("root")

    with pytest.raises(IntegrityError):
        seed.admin("root")
    db.rollback()

    result = admin_auth.admin_login(context, db, username="root", password=DEFAULT_PASSWORD)
    assert result.admin.username == "root"


def test_racing_registration_reports_conflict(context, db, seed, monkeypatch):
    seed.app("t1")
    # 模拟两个并发请求都已通过预检查。
    monkeypatch.setattr(directory, "ensure_user_unique", lambda *args, **kwargs: None)

    directory.register(context, db, app_id="t1", username="alice", password=DEFAULT_PASSWORD)
    with pytest.raises(ConflictError):
        directory.register(context, db, app_id="t1", username="alice", password=DEFAULT_PASSWORD)
    with pytest.raises(ConflictError):
        directory.register(
            context, db, app_id="t1", username="alice", password=DEFAULT_PASSWORD, email="a@example.com"
        )

    # 冲突后会话已回滚，可继续使用。
    assert _user_count(db, "t1", "alice") == 1


def test_racing_admin_creation_reports_conflict(db, passwords, monkeypatch):
    monkeypatch.setattr(system_admins, "_ensure_admin_unique", lambda *args, **kwargs: None)

    def _create():
        return system_admins.create_admin(
            db, passwords=passwords, username="ops", password=DEFAULT_PASSWORD, admin_type=AdminType.SYSTEM
        )

    _create()
    with pytest.raises(ConflictError):
        _create()

    assert db.execute(select(func.count(SystemAdmin.id))).scalar_one() == 1


def test_racing_role_creation_reports_conflict(db, seed, monkeypatch):
    seed.app("t1")
    seed.app("t2")
    monkeypatch.setattr(resources, "_ensure_role_code_unique", lambda *args, **kwargs: None)

    resources.create_role(db, app_id="t1", name="编辑", code="editor")
    with pytest.raises(ConflictError) as excinfo:
        resources.create_role(db, app_id="t1", name="编辑2", code="editor")
    assert excinfo.value.details == {"field": "code"}

    other = resources.create_role(db, app_id="t2", name="编辑", code="editor")
    assert other.app_id == "t2"
