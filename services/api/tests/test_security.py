import time

import jwt
import pytest

from authcenter_api.core.cache import blacklist_key
from authcenter_api.core.security import extract_bearer_token
from authcenter_api.errors import InvalidTokenError, TransientError


def _forged_claims(settings, **overrides):
    now_ts = int(time.time())
    claims = {
        "kind": "user",
        "user_id": 1,
        "app_id": "t1",
        "roles": [],
        "jti": "forged-jti",
        "iat": now_ts,
        "nbf": now_ts,
        "exp": now_ts + 600,
        "iss": settings.auth_jwt_issuer,
        "sub": "access-token",
    }
    claims.update(overrides)
    return claims


def test_access_token_round_trip(context):
    engine = context.token_engine
    issued = engine.issue_access_token(7, "t1", [3, 1, 3])

    claims = engine.validate_access_token(issued.token)

    assert claims.kind == "user"
    assert claims.token_type == "access"
    assert claims.user_id == 7
    assert claims.app_id == "t1"
    assert claims.roles == [1, 3]
    assert claims.jti == issued.jti
    assert issued.expires_in == context.settings.auth_access_token_ttl_seconds


def test_refresh_token_is_not_accepted_as_access_token(context):
    engine = context.token_engine
    refresh = engine.issue_refresh_token(7, "t1")

    assert engine.validate_refresh_token(refresh.token).user_id == 7
    with pytest.raises(InvalidTokenError):
        engine.validate_access_token(refresh.token)


def test_admin_and_user_tokens_are_not_interchangeable(context):
    engine = context.token_engine
    admin_access, _ = engine.issue_admin_tokens(admin_id=1, username="root", admin_type="system", app_id=None)
    user_access = engine.issue_access_token(7, "t1", [])

    admin_claims = engine.validate_admin_access_token(admin_access.token)
    assert admin_claims.admin_id == 1
    assert admin_claims.app_id is None

    with pytest.raises(InvalidTokenError):
        engine.validate_access_token(admin_access.token)
    with pytest.raises(InvalidTokenError):
        engine.validate_admin_access_token(user_access.token)


def test_expired_token_is_rejected(context, settings):
    now_ts = int(time.time())
    token = jwt.encode(
        _forged_claims(settings, iat=now_ts - 120, nbf=now_ts - 120, exp=now_ts - 60),
        settings.auth_jwt_secret,
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError):
        context.token_engine.validate_access_token(token)


def test_unexpected_algorithm_is_rejected(context, settings):
    token = jwt.encode(_forged_claims(settings), settings.auth_jwt_secret, algorithm="HS512")

    with pytest.raises(InvalidTokenError):
        context.token_engine.validate_access_token(token)


def test_wrong_issuer_and_tampered_signature_are_rejected(context, settings):
    foreign = jwt.encode(_forged_claims(settings, iss="someone-else"), settings.auth_jwt_secret, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        context.token_engine.validate_access_token(foreign)

    issued = context.token_engine.issue_access_token(7, "t1", [])
    header, payload, signature = issued.token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    with pytest.raises(InvalidTokenError):
        context.token_engine.validate_access_token(tampered)


def test_missing_required_claim_is_rejected(context, settings):
    claims = _forged_claims(settings)
    claims.pop("jti")
    token = jwt.encode(claims, settings.auth_jwt_secret, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        context.token_engine.validate_access_token(token)


def test_revoked_token_still_decodes_but_is_blacklisted(context, fake_redis):
    engine = context.token_engine
    issued = engine.issue_access_token(7, "t1", [1])

    engine.revoke(issued.token)

    # 签名与有效期仍然合法，吊销状态需单独查询。
    assert engine.validate_access_token(issued.token).jti == issued.jti
    assert engine.is_revoked(issued.jti) is True
    ttl = fake_redis.ttl(blacklist_key(issued.jti))
    assert 0 < ttl <= context.settings.auth_access_token_ttl_seconds


def test_revoke_refresh_token_uses_refresh_lifetime(context, fake_redis):
    engine = context.token_engine
    refresh = engine.issue_refresh_token(7, "t1")

    engine.revoke(refresh.token)

    ttl = fake_redis.ttl(blacklist_key(refresh.jti))
    assert context.settings.auth_access_token_ttl_seconds < ttl <= context.settings.auth_refresh_token_ttl_seconds


def test_revoke_expired_token_writes_nothing(context, settings, fake_redis):
    now_ts = int(time.time())
    token = jwt.encode(
        _forged_claims(settings, jti="old-jti", iat=now_ts - 120, nbf=now_ts - 120, exp=now_ts - 60),
        settings.auth_jwt_secret,
        algorithm="HS256",
    )

    context.token_engine.revoke(token)

    assert context.token_engine.is_revoked("old-jti") is False
    assert fake_redis.values == {}


def test_revoke_rejects_garbage(context):
    with pytest.raises(InvalidTokenError):
        context.token_engine.revoke("not-a-token")


def test_is_revoked_fails_closed_when_cache_unavailable(context, fake_redis):
    fake_redis.fail = True

    with pytest.raises(TransientError):
        context.token_engine.is_revoked("any-jti")


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def") == "abc.def"
    assert extract_bearer_token("bearer   abc.def ") == "abc.def"

    for header in (None, "", "Bearer", "Basic abc", "Token abc"):
        with pytest.raises(InvalidTokenError):
            extract_bearer_token(header)
