import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from authcenter_api.core.cache import (
    CacheLayer,
    api_permission_key,
    blacklist_key,
    login_code_key,
    role_permission_key,
    user_permission_key,
)
from authcenter_api.core.config import Settings, get_settings
from authcenter_api.errors import TransientError
from authcenter_api.services.tokens import record_issued_tokens


def test_settings_reject_shared_or_empty_secrets():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_jwt_secret="same-secret", auth_jwt_refresh_secret="same-secret")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_jwt_secret="   ", auth_jwt_refresh_secret="refresh-secret")


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("AC_AUTH_ACCESS_TOKEN_TTL_SECONDS", "600")
    monkeypatch.setenv("AC_API_PREFIX", "/api/v2")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.auth_access_token_ttl_seconds == 600
        assert settings.api_prefix == "/api/v2"
        assert settings.auth_refresh_token_ttl_seconds == 7200
        assert settings.permission_cache_ttl_seconds == 43200
    finally:
        get_settings.cache_clear()


def test_cache_key_namespaces():
    assert blacklist_key("abc") == "token:blacklist:abc"
    assert user_permission_key(7, "t1") == "user:permission:7:t1"
    assert role_permission_key(3, "t1") == "role:permission:3:t1"
    assert api_permission_key(5, "t1") == "api:permission:5:t1"
    assert login_code_key("t1", "13800000000") == "otp:t1:13800000000"


def test_cache_layer_skips_empty_sets_and_floors_ttl(cache, fake_redis):
    cache.add_members("empty", set(), 60)
    assert "empty" not in fake_redis.values

    cache.set_value("short", "1", 0)
    assert fake_redis.ttl("short") == 1


def test_cache_layer_maps_redis_errors(cache: CacheLayer, fake_redis):
    fake_redis.fail = True

    for call in (
        lambda: cache.get_members("k"),
        lambda: cache.add_members("k", {"a"}, 60),
        lambda: cache.set_value("k", "v", 60),
        lambda: cache.get_value("k"),
        lambda: cache.exists("k"),
        lambda: cache.delete("k"),
        cache.ping,
    ):
        with pytest.raises(TransientError):
            call()


def test_token_record_failure_is_reported(context, db, monkeypatch):
    issued = context.token_engine.issue_access_token(1, "t1", [])

    def _broken_commit():
        raise OperationalError("INSERT INTO tokens", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", _broken_commit)

    with pytest.raises(TransientError):
        record_issued_tokens(db, app_id="t1", subject_kind="user", subject_id=1, tokens=[issued])
