from authcenter_api.models.enums import AdminType, EntityStatus, LoginMethod

from conftest import DEFAULT_PASSWORD

API = "/api/v1"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _assert_error(resp, status_code: int, code: str) -> dict:
    assert resp.status_code == status_code, resp.text
    body = resp.json()
    assert body["request_id"]
    assert body["error"]["code"] == code
    return body["error"]


def _user_login(client, app_id: str, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    resp = client.post(f"{API}/auth/login", json={"app_id": app_id, "username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _admin_login(client, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    resp = client.post(f"{API}/system/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _seed_alice(seed):
    seed.app("t1")
    user = seed.user("t1", "alice")
    editor = seed.role("t1", "editor")
    seed.grant(editor, seed.permission("t1", "doc:write"))
    seed.assign(user, editor)
    return user


# ---- 基础设施 ----


def test_health_checks_use_envelope(client, fake_redis):
    live = client.get(f"{API}/health/live")
    assert live.status_code == 200
    body = live.json()
    assert body["data"] == {"status": "ok"}
    assert body["request_id"] == live.headers["X-Request-Id"]
    assert body["meta"]["method"] == "GET"

    assert client.get(f"{API}/health/ready").json()["data"] == {"status": "ready"}

    fake_redis.fail = True
    _assert_error(client.get(f"{API}/health/ready"), 503, "TRANSIENT_FAILURE")


def test_request_id_is_propagated(client):
    resp = client.get(f"{API}/health/live", headers={"X-Request-Id": "trace-123"})
    assert resp.headers["X-Request-Id"] == "trace-123"
    assert resp.json()["request_id"] == "trace-123"


def test_validation_error_shape(client):
    error = _assert_error(client.post(f"{API}/auth/login", json={"username": "alice"}), 422, "VALIDATION_ERROR")
    assert any(item["field"] == "app_id" for item in error["details"]["errors"])


# ---- 终端用户 ----


def test_user_login_and_permission_queries(client, seed):
    _seed_alice(seed)
    data = _user_login(client, "t1", "alice")
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "alice"
    assert [role["code"] for role in data["user"]["roles"]] == ["editor"]
    headers = _bearer(data["access_token"])

    allowed = client.get(f"{API}/permissions/check", params={"code": "doc:write"}, headers=headers)
    assert allowed.json()["data"] == {"allowed": True}
    denied = client.get(f"{API}/permissions/check", params={"code": "doc:delete"}, headers=headers)
    assert denied.json()["data"] == {"allowed": False}

    codes = client.get(f"{API}/permissions/user", headers=headers)
    assert codes.json()["data"] == {"permission_codes": ["doc:write"]}
    roles = client.get(f"{API}/permissions/roles", headers=headers)
    assert [role["code"] for role in roles.json()["data"]["roles"]] == ["editor"]

    me = client.get(f"{API}/auth/user", headers=headers)
    assert me.status_code == 200
    assert me.json()["data"]["app_id"] == "t1"


def test_check_api_permission(client, seed):
    seed.app("t1")
    user = seed.user("t1", "bob")
    viewer = seed.role("t1", "viewer")
    report_read = seed.permission("t1", "report:read")
    seed.api("t1", "/reports", "GET", report_read)
    seed.grant(viewer, report_read)
    seed.assign(user, viewer)
    headers = _bearer(_user_login(client, "t1", "bob")["access_token"])

    get_resp = client.get(f"{API}/permissions/check-api", params={"path": "/reports", "method": "GET"}, headers=headers)
    assert get_resp.json()["data"]["allowed"] is True
    post_resp = client.get(
        f"{API}/permissions/check-api", params={"path": "/reports", "method": "POST"}, headers=headers
    )
    assert post_resp.json()["data"]["allowed"] is False


def test_login_failures(client, seed):
    _seed_alice(seed)
    seed.app("t9", status=EntityStatus.DISABLED)

    wrong = client.post(f"{API}/auth/login", json={"app_id": "t1", "username": "alice", "password": "nope-nope"})
    _assert_error(wrong, 401, "INVALID_CREDENTIALS")
    unknown = client.post(f"{API}/auth/login", json={"app_id": "t1", "username": "ghost", "password": "nope-nope"})
    assert unknown.json()["error"]["message"] == wrong.json()["error"]["message"]

    disabled = client.post(f"{API}/auth/login", json={"app_id": "t9", "username": "alice", "password": "x"})
    _assert_error(disabled, 403, "TENANT_UNAVAILABLE")


def test_logout_revokes_tokens(client, seed):
    _seed_alice(seed)
    data = _user_login(client, "t1", "alice")
    headers = _bearer(data["access_token"])

    resp = client.post(f"{API}/auth/logout", json={"refresh_token": data["refresh_token"]}, headers=headers)
    assert resp.json()["data"] == {"logged_out": True, "revoked_refresh": True}

    # 签名仍然有效，但已吊销的令牌必须被拒绝。
    _assert_error(client.get(f"{API}/auth/user", headers=headers), 401, "INVALID_TOKEN")
    _assert_error(client.get(f"{API}/permissions/check", params={"code": "doc:write"}, headers=headers), 401, "INVALID_TOKEN")
    refresh = client.post(f"{API}/auth/refresh", json={"refresh_token": data["refresh_token"]})
    _assert_error(refresh, 401, "INVALID_TOKEN")


def test_refresh_returns_new_pair(client, seed):
    _seed_alice(seed)
    data = _user_login(client, "t1", "alice")

    resp = client.post(f"{API}/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 200, resp.text
    refreshed = resp.json()["data"]
    assert refreshed["refresh_token"] != data["refresh_token"]

    me = client.get(f"{API}/auth/user", headers=_bearer(refreshed["access_token"]))
    assert me.json()["data"]["username"] == "alice"


def test_missing_or_foreign_tokens_are_rejected(client, seed):
    _seed_alice(seed)
    seed.admin("root")

    _assert_error(client.get(f"{API}/auth/user"), 401, "INVALID_TOKEN")
    _assert_error(client.get(f"{API}/auth/user", headers=_bearer("garbage")), 401, "INVALID_TOKEN")

    admin_token = _admin_login(client, "root")["access_token"]
    _assert_error(client.get(f"{API}/auth/user", headers=_bearer(admin_token)), 401, "INVALID_TOKEN")

    user_token = _user_login(client, "t1", "alice")["access_token"]
    _assert_error(client.get(f"{API}/system/admin/info", headers=_bearer(user_token)), 401, "INVALID_TOKEN")


def test_register_then_login(client, seed):
    seed.app("t1")
    payload = {"app_id": "t1", "username": "newbie", "password": DEFAULT_PASSWORD, "email": "newbie@example.com"}

    created = client.post(f"{API}/auth/register", json=payload)
    assert created.status_code == 200, created.text
    assert created.json()["data"]["roles"] == []
    _assert_error(client.post(f"{API}/auth/register", json=payload), 409, "CONFLICT")

    assert _user_login(client, "t1", "newbie")["user"]["email"] == "newbie@example.com"


def test_login_code_flow(client, seed):
    seed.app("t1", login_method=LoginMethod.CODE, secret="t1-secret")
    seed.user("t1", "alice", phone="13800000000")

    _assert_error(client.post(f"{API}/auth/login-code", json={"phone": "13800000000"}), 401, "INVALID_CREDENTIALS")
    bad_secret = {"X-App-Id": "t1", "X-App-Secret": "wrong"}
    _assert_error(
        client.post(f"{API}/auth/login-code", json={"phone": "13800000000"}, headers=bad_secret),
        401,
        "INVALID_CREDENTIALS",
    )

    headers = {"X-App-Id": "t1", "X-App-Secret": "t1-secret"}
    issued = client.post(f"{API}/auth/login-code", json={"phone": "13800000000"}, headers=headers)
    assert issued.status_code == 200, issued.text
    code = issued.json()["data"]["code"]

    login = client.post(f"{API}/auth/login", json={"app_id": "t1", "phone": "13800000000", "code": code})
    assert login.status_code == 200, login.text
    assert login.json()["data"]["user"]["username"] == "alice"

    again = client.post(f"{API}/auth/login", json={"app_id": "t1", "phone": "13800000000", "code": code})
    _assert_error(again, 401, "INVALID_CREDENTIALS")


# ---- 管理员 ----


def test_bootstrap_register_only_once(client):
    payload = {"username": "root", "password": DEFAULT_PASSWORD}
    first = client.post(f"{API}/system/register", json=payload)
    assert first.status_code == 200, first.text
    assert first.json()["data"]["admin_type"] == "system"

    second = client.post(f"{API}/system/register", json={"username": "root2", "password": DEFAULT_PASSWORD})
    _assert_error(second, 403, "FORBIDDEN")

    data = _admin_login(client, "root")
    info = client.get(f"{API}/system/admin/info", headers=_bearer(data["access_token"]))
    assert info.json()["data"]["username"] == "root"


def test_bootstrap_rejects_app_admin(client):
    resp = client.post(
        f"{API}/system/register",
        json={"username": "root", "password": DEFAULT_PASSWORD, "admin_type": "app", "app_id": "t1"},
    )
    _assert_error(resp, 403, "FORBIDDEN")


def test_admin_refresh_and_logout(client, seed):
    seed.admin("root")
    data = _admin_login(client, "root")

    refreshed = client.post(f"{API}/system/refresh", json={"refresh_token": data["refresh_token"]})
    assert refreshed.status_code == 200, refreshed.text
    new_access = refreshed.json()["data"]["access_token"]

    out = client.post(f"{API}/system/logout", headers=_bearer(new_access))
    assert out.json()["data"] == {"logged_out": True, "revoked_refresh": False}
    _assert_error(client.get(f"{API}/system/admin/info", headers=_bearer(new_access)), 401, "INVALID_TOKEN")


def test_app_lifecycle(client, seed):
    seed.admin("root")
    headers = _bearer(_admin_login(client, "root")["access_token"])

    created = client.post(f"{API}/apps", json={"name": "研发中心", "description": "内部系统"}, headers=headers)
    assert created.status_code == 200, created.text
    app = created.json()["data"]
    assert app["app_id"].startswith("app_")
    assert app["app_secret"].startswith("app_")
    assert app["login_method"] == 0
    app_id = app["app_id"]

    detail = client.get(f"{API}/apps/{app_id}", headers=headers).json()["data"]
    assert "app_secret" not in detail

    listing = client.get(f"{API}/apps", params={"page": 1, "page_size": 10}, headers=headers).json()
    assert listing["meta"]["pagination"]["total"] == 1

    _assert_error(client.post(f"{API}/apps", json={"name": "研发中心"}, headers=headers), 409, "CONFLICT")

    patched = client.patch(f"{API}/apps/{app_id}", json={"description": None}, headers=headers).json()["data"]
    assert patched["description"] is None
    assert patched["name"] == "研发中心"

    method = client.put(f"{API}/apps/{app_id}/login-method", json={"login_method": 1}, headers=headers)
    assert method.json()["data"] == {"app_id": app_id, "login_method": 1}
    assert client.get(f"{API}/apps/{app_id}/login-method", headers=headers).json()["data"]["login_method"] == 1

    rotated = client.post(f"{API}/apps/{app_id}/regenerate-secret", headers=headers).json()["data"]
    assert rotated["app_secret"] != app["app_secret"]

    assert client.delete(f"{API}/apps/{app_id}", headers=headers).json()["data"] == {"deleted": True}
    _assert_error(client.get(f"{API}/apps/{app_id}", headers=headers), 404, "NOT_FOUND")


def test_app_admin_is_confined_to_bound_app(client, seed):
    seed.app("t1")
    seed.app("t2")
    seed.admin("root")
    seed.admin("t1-admin", admin_type=AdminType.APP, app_id="t1")
    root_headers = _bearer(_admin_login(client, "root")["access_token"])
    app_headers = _bearer(_admin_login(client, "t1-admin")["access_token"])

    error = _assert_error(client.get(f"{API}/app/roles", params={"app_id": "t2"}, headers=app_headers), 403, "FORBIDDEN")
    assert error["details"]["reason"] == "cross_app_access"
    _assert_error(client.get(f"{API}/apps", headers=app_headers), 403, "FORBIDDEN")

    created = client.post(f"{API}/app/roles", json={"name": "编辑", "code": "editor"}, headers=app_headers)
    assert created.json()["data"]["app_id"] == "t1"
    assert client.get(f"{API}/app/self", headers=app_headers).json()["data"]["app_id"] == "t1"

    # 系统管理员必须显式指定目标应用。
    _assert_error(client.get(f"{API}/app/roles", headers=root_headers), 403, "FORBIDDEN")
    t1_roles = client.get(f"{API}/app/roles", params={"app_id": "t1"}, headers=root_headers).json()["data"]
    assert [role["code"] for role in t1_roles] == ["editor"]
    assert client.get(f"{API}/app/roles", params={"app_id": "t2"}, headers=root_headers).json()["data"] == []
    _assert_error(client.get(f"{API}/app/roles", params={"app_id": "t404"}, headers=root_headers), 404, "NOT_FOUND")


def test_app_resources_drive_runtime_checks(client, seed):
    seed.app("t1")
    seed.app("t2")
    seed.admin("root")
    headers = _bearer(_admin_login(client, "root")["access_token"])
    t1 = {"app_id": "t1"}

    permission = client.post(
        f"{API}/app/permissions",
        params=t1,
        json={"name": "查看报表", "code": "report:read", "resource": "report", "action": "read"},
        headers=headers,
    ).json()["data"]
    role = client.post(f"{API}/app/roles", params=t1, json={"name": "访客", "code": "viewer"}, headers=headers).json()[
        "data"
    ]
    api = client.post(
        f"{API}/app/apis",
        params=t1,
        json={"path": "/reports", "method": "get", "permission_id": permission["id"]},
        headers=headers,
    ).json()["data"]
    assert api["method"] == "GET"

    duplicate = client.post(
        f"{API}/app/apis",
        params=t1,
        json={"path": "/reports", "method": "GET", "permission_id": permission["id"]},
        headers=headers,
    )
    _assert_error(duplicate, 409, "CONFLICT")

    granted = client.put(
        f"{API}/app/roles/{role['id']}/permissions",
        params=t1,
        json={"permission_ids": [permission["id"]]},
        headers=headers,
    )
    assert granted.json()["data"] == {"ids": [permission["id"]]}

    foreign = client.post(
        f"{API}/app/permissions",
        params={"app_id": "t2"},
        json={"name": "删除", "code": "doc:delete", "resource": "doc", "action": "delete"},
        headers=headers,
    ).json()["data"]
    cross = client.put(
        f"{API}/app/roles/{role['id']}/permissions",
        params=t1,
        json={"permission_ids": [foreign["id"]]},
        headers=headers,
    )
    _assert_error(cross, 404, "NOT_FOUND")

    user = client.post(
        f"{API}/app/users",
        params=t1,
        json={"username": "carol", "password": DEFAULT_PASSWORD},
        headers=headers,
    ).json()["data"]
    assigned = client.put(
        f"{API}/app/users/{user['id']}/roles",
        params=t1,
        json={"role_ids": [role["id"]]},
        headers=headers,
    )
    assert assigned.json()["data"] == {"ids": [role["id"]]}
    assert client.get(f"{API}/app/users/{user['id']}/roles", params=t1, headers=headers).json()["data"] == {
        "ids": [role["id"]]
    }

    user_headers = _bearer(_user_login(client, "t1", "carol")["access_token"])
    check = client.get(
        f"{API}/permissions/check-api", params={"path": "/reports", "method": "GET"}, headers=user_headers
    )
    assert check.json()["data"]["allowed"] is True

    app_users = client.get(f"{API}/apps/t1/users", headers=headers).json()
    assert [item["username"] for item in app_users["data"]] == ["carol"]


def test_user_update_and_delete(client, seed):
    seed.app("t1")
    seed.admin("root")
    headers = _bearer(_admin_login(client, "root")["access_token"])
    t1 = {"app_id": "t1"}
    user = client.post(
        f"{API}/app/users",
        params=t1,
        json={"username": "dave", "password": DEFAULT_PASSWORD, "email": "dave@example.com"},
        headers=headers,
    ).json()["data"]

    patched = client.patch(
        f"{API}/app/users/{user['id']}",
        params=t1,
        json={"email": None, "password": "NewPassw0rd!"},
        headers=headers,
    ).json()["data"]
    assert patched["email"] is None
    assert _user_login(client, "t1", "dave", "NewPassw0rd!")["user"]["username"] == "dave"

    rejected = client.patch(f"{API}/app/users/{user['id']}", params=t1, json={"app_id": "t2"}, headers=headers)
    _assert_error(rejected, 422, "VALIDATION_ERROR")

    disabled = client.patch(f"{API}/app/users/{user['id']}", params=t1, json={"status": "disabled"}, headers=headers)
    assert disabled.json()["data"]["status"] == "disabled"
    denied = client.post(f"{API}/auth/login", json={"app_id": "t1", "username": "dave", "password": "NewPassw0rd!"})
    _assert_error(denied, 401, "INVALID_CREDENTIALS")

    assert client.delete(f"{API}/app/users/{user['id']}", params=t1, headers=headers).json()["data"] == {"deleted": True}
    _assert_error(client.get(f"{API}/app/users/{user['id']}", params=t1, headers=headers), 404, "NOT_FOUND")


def test_system_admin_management(client, seed):
    seed.app("t1")
    root = seed.admin("root")
    headers = _bearer(_admin_login(client, "root")["access_token"])

    missing_binding = client.post(
        f"{API}/system-admins",
        json={"username": "ops", "password": DEFAULT_PASSWORD, "admin_type": "app"},
        headers=headers,
    )
    _assert_error(missing_binding, 400, "BAD_REQUEST")

    created = client.post(
        f"{API}/system-admins",
        json={"username": "ops", "password": DEFAULT_PASSWORD, "admin_type": "app", "app_id": "t1"},
        headers=headers,
    )
    assert created.status_code == 200, created.text
    ops = created.json()["data"]
    assert ops["app_id"] == "t1"

    duplicate = client.post(f"{API}/system-admins", json={"username": "ops", "password": DEFAULT_PASSWORD}, headers=headers)
    _assert_error(duplicate, 409, "CONFLICT")

    listing = client.get(f"{API}/system-admins", params={"admin_type": "app"}, headers=headers).json()
    assert [item["username"] for item in listing["data"]] == ["ops"]

    reset = client.post(
        f"{API}/system-admins/{ops['id']}/reset-password", json={"password": "Fresh-Passw0rd"}, headers=headers
    )
    assert reset.status_code == 200
    assert _admin_login(client, "ops", "Fresh-Passw0rd")["admin"]["admin_type"] == "app"

    _assert_error(client.delete(f"{API}/system-admins/{root.id}", headers=headers), 403, "FORBIDDEN")
    assert client.delete(f"{API}/system-admins/{ops['id']}", headers=headers).json()["data"] == {"deleted": True}
    gone = client.post(f"{API}/system/login", json={"username": "ops", "password": "Fresh-Passw0rd"})
    _assert_error(gone, 401, "INVALID_CREDENTIALS")
