"""令牌签发、校验与吊销。

访问令牌与刷新令牌分别使用独立密钥（HS256）签名，管理员令牌复用同一组密钥，
通过 `kind` 声明区分，面向用户的校验会拒绝管理员令牌，反之亦然。
吊销通过 Redis 黑名单实现，黑名单条目随令牌剩余有效期自动过期。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import time
from typing import Any
from uuid import uuid4

import jwt

from authcenter_api.core.cache import CacheLayer, blacklist_key
from authcenter_api.core.config import Settings
from authcenter_api.errors import InvalidTokenError

logger = logging.getLogger("authcenter_api.security")

JWT_ALGORITHM = "HS256"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

KIND_USER = "user"
KIND_ADMIN = "admin"

_SUBJECT_BY_TYPE = {
    TOKEN_TYPE_ACCESS: "access-token",
    TOKEN_TYPE_REFRESH: "refresh-token",
}
_TYPE_BY_SUBJECT = {value: key for key, value in _SUBJECT_BY_TYPE.items()}
_REQUIRED_CLAIMS = ["exp", "iat", "nbf", "iss", "sub", "jti"]


@dataclass
class IssuedToken:
    """一次签发结果。"""

    # 已签名令牌字符串。
    token: str
    # 令牌唯一标识，吊销键。
    jti: str
    # access / refresh。
    token_type: str
    # 过期时间（UTC）。
    expires_at: datetime
    # 签发时的有效期秒数。
    expires_in: int


@dataclass
class TokenClaims:
    """校验通过后的令牌声明。"""

    kind: str
    token_type: str
    jti: str
    issued_at: int
    expires_at: int
    app_id: str | None
    user_id: int | None = None
    roles: list[int] = field(default_factory=list)
    admin_id: int | None = None
    username: str | None = None
    admin_type: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


def extract_bearer_token(authorization: str | None) -> str:
    """从 `Authorization: Bearer <token>` 头中提取令牌，方案名不区分大小写。"""
    if not authorization:
        raise InvalidTokenError("缺少访问令牌。")
    parts = authorization.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidTokenError("认证头格式错误，应为 Bearer <token>。")
    return parts[1].strip()


class TokenEngine:
    """令牌引擎，签名密钥全部来自配置。"""

    def __init__(self, settings: Settings, cache: CacheLayer):
        self.settings = settings
        self.cache = cache

    def _secret_for(self, token_type: str) -> str:
        if token_type == TOKEN_TYPE_REFRESH:
            return self.settings.auth_jwt_refresh_secret
        return self.settings.auth_jwt_secret

    def _ttl_for(self, kind: str, token_type: str) -> int:
        if kind == KIND_ADMIN:
            if token_type == TOKEN_TYPE_REFRESH:
                return self.settings.auth_admin_refresh_token_ttl_seconds
            return self.settings.auth_admin_access_token_ttl_seconds
        if token_type == TOKEN_TYPE_REFRESH:
            return self.settings.auth_refresh_token_ttl_seconds
        return self.settings.auth_access_token_ttl_seconds

    def _issue(self, *, kind: str, token_type: str, extra: dict[str, Any]) -> IssuedToken:
        now_ts = int(time.time())
        ttl = self._ttl_for(kind, token_type)
        jti = uuid4().hex
        claims: dict[str, Any] = {
            **extra,
            "kind": kind,
            "jti": jti,
            "iat": now_ts,
            "nbf": now_ts,
            "exp": now_ts + ttl,
            "iss": self.settings.auth_jwt_issuer,
            "sub": _SUBJECT_BY_TYPE[token_type],
        }
        token = jwt.encode(claims, self._secret_for(token_type), algorithm=JWT_ALGORITHM)
        return IssuedToken(
            token=token,
            jti=jti,
            token_type=token_type,
            expires_at=datetime.fromtimestamp(now_ts + ttl, tz=timezone.utc),
            expires_in=ttl,
        )

    def issue_access_token(self, user_id: int, app_id: str, role_ids: list[int]) -> IssuedToken:
        """签发用户访问令牌，携带当前角色集合。"""
        return self._issue(
            kind=KIND_USER,
            token_type=TOKEN_TYPE_ACCESS,
            extra={"user_id": user_id, "app_id": app_id, "roles": sorted(set(role_ids))},
        )

    def issue_refresh_token(self, user_id: int, app_id: str) -> IssuedToken:
        """签发用户刷新令牌，不携带角色，刷新时重新解析。"""
        return self._issue(
            kind=KIND_USER,
            token_type=TOKEN_TYPE_REFRESH,
            extra={"user_id": user_id, "app_id": app_id},
        )

    def issue_admin_tokens(
        self,
        *,
        admin_id: int,
        username: str,
        admin_type: str,
        app_id: str | None,
    ) -> tuple[IssuedToken, IssuedToken]:
        """签发管理员访问令牌与刷新令牌。"""
        extra = {"admin_id": admin_id, "username": username, "admin_type": admin_type, "app_id": app_id}
        access = self._issue(kind=KIND_ADMIN, token_type=TOKEN_TYPE_ACCESS, extra=extra)
        refresh = self._issue(kind=KIND_ADMIN, token_type=TOKEN_TYPE_REFRESH, extra=extra)
        return access, refresh

    def _decode(self, token: str, *, token_type: str, verify_exp: bool = True) -> dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
            algorithm = str(header.get("alg") or "")
            if not algorithm.upper().startswith("HS"):
                raise InvalidTokenError("不支持的令牌签名算法。")
            claims = jwt.decode(
                token,
                key=self._secret_for(token_type),
                algorithms=[JWT_ALGORITHM],
                issuer=self.settings.auth_jwt_issuer,
                leeway=self.settings.auth_jwt_leeway_seconds,
                options={"require": _REQUIRED_CLAIMS, "verify_exp": verify_exp},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc
        if _TYPE_BY_SUBJECT.get(claims.get("sub")) != token_type:
            raise InvalidTokenError("令牌类型不匹配。")
        return claims

    def _to_claims(self, claims: dict[str, Any], *, kind: str, token_type: str) -> TokenClaims:
        if claims.get("kind") != kind:
            raise InvalidTokenError("令牌类型不匹配。")
        try:
            if kind == KIND_ADMIN:
                admin_id = int(claims["admin_id"])
                username = str(claims["username"])
                admin_type = str(claims["admin_type"])
                app_id = claims.get("app_id")
                return TokenClaims(
                    kind=kind,
                    token_type=token_type,
                    jti=str(claims["jti"]),
                    issued_at=int(claims["iat"]),
                    expires_at=int(claims["exp"]),
                    app_id=str(app_id) if app_id else None,
                    admin_id=admin_id,
                    username=username,
                    admin_type=admin_type,
                    raw=claims,
                )
            roles = claims.get("roles") or []
            return TokenClaims(
                kind=kind,
                token_type=token_type,
                jti=str(claims["jti"]),
                issued_at=int(claims["iat"]),
                expires_at=int(claims["exp"]),
                app_id=str(claims["app_id"]),
                user_id=int(claims["user_id"]),
                roles=[int(role_id) for role_id in roles],
                raw=claims,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("令牌声明不完整。") from exc

    def validate_access_token(self, token: str) -> TokenClaims:
        """校验用户访问令牌的签名、算法与有效期，不查询黑名单。"""
        claims = self._decode(token, token_type=TOKEN_TYPE_ACCESS)
        return self._to_claims(claims, kind=KIND_USER, token_type=TOKEN_TYPE_ACCESS)

    def validate_refresh_token(self, token: str) -> TokenClaims:
        claims = self._decode(token, token_type=TOKEN_TYPE_REFRESH)
        return self._to_claims(claims, kind=KIND_USER, token_type=TOKEN_TYPE_REFRESH)

    def validate_admin_access_token(self, token: str) -> TokenClaims:
        claims = self._decode(token, token_type=TOKEN_TYPE_ACCESS)
        return self._to_claims(claims, kind=KIND_ADMIN, token_type=TOKEN_TYPE_ACCESS)

    def validate_admin_refresh_token(self, token: str) -> TokenClaims:
        claims = self._decode(token, token_type=TOKEN_TYPE_REFRESH)
        return self._to_claims(claims, kind=KIND_ADMIN, token_type=TOKEN_TYPE_REFRESH)

    def _decode_for_revoke(self, token: str) -> tuple[dict[str, Any], str]:
        """吊销时接受访问令牌或刷新令牌，已过期令牌也可解析。"""
        for token_type in (TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH):
            try:
                return self._decode(token, token_type=token_type, verify_exp=False), token_type
            except InvalidTokenError:
                continue
        raise InvalidTokenError()

    def revoke(self, token: str) -> None:
        """将令牌 jti 写入黑名单，有效期不超过令牌剩余寿命与该类令牌配置寿命。"""
        claims, token_type = self._decode_for_revoke(token)
        kind = KIND_ADMIN if claims.get("kind") == KIND_ADMIN else KIND_USER
        remaining = int(claims["exp"]) - int(time.time())
        if remaining <= 0:
            # 已自然过期的令牌无需拉黑。
            return
        ttl = max(1, min(remaining, self._ttl_for(kind, token_type)))
        self.cache.set_value(blacklist_key(str(claims["jti"])), "1", ttl)
        logger.info("token revoked jti=%s kind=%s type=%s ttl=%s", claims["jti"], kind, token_type, ttl)

    def is_revoked(self, jti: str) -> bool:
        """黑名单查询，缓存不可用时抛出 `TransientError`。"""
        return self.cache.exists(blacklist_key(jti))
