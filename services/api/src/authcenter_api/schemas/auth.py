"""终端用户认证请求结构。"""

from pydantic import BaseModel, Field


class AuthLoginRequest(BaseModel):
    """登录请求，按应用登录方式使用用户名密码或手机号验证码。"""

    app_id: str = Field(min_length=1, max_length=64, description="应用标识。", examples=["app_0f3c..."])
    username: str | None = Field(default=None, max_length=64, description="用户名（密码登录）。", examples=["alice"])
    password: str | None = Field(default=None, max_length=128, description="密码（密码登录）。")
    phone: str | None = Field(default=None, max_length=32, description="手机号（验证码登录）。")
    code: str | None = Field(default=None, max_length=16, description="一次性验证码（验证码登录）。")


class AuthRegisterRequest(BaseModel):
    """注册请求。"""

    app_id: str = Field(min_length=1, max_length=64, description="应用标识。")
    username: str = Field(min_length=2, max_length=64, description="用户名，应用内唯一。", examples=["alice"])
    password: str = Field(min_length=6, max_length=128, description="登录密码。", examples=["StrongPassw0rd!"])
    email: str | None = Field(
        default=None,
        max_length=256,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="可选邮箱，应用内唯一。",
        examples=["alice@example.com"],
    )
    phone: str | None = Field(default=None, max_length=32, description="可选手机号。")


class AuthRefreshRequest(BaseModel):
    """刷新令牌请求。"""

    refresh_token: str = Field(min_length=1, description="刷新令牌。")


class AuthLogoutRequest(BaseModel):
    """登出请求，刷新令牌可选。"""

    refresh_token: str | None = Field(default=None, description="可选刷新令牌，提供时一并吊销。")


class LoginCodeRequest(BaseModel):
    """一次性验证码签发请求。"""

    phone: str = Field(min_length=3, max_length=32, description="接收验证码的手机号。", examples=["13800000000"])
