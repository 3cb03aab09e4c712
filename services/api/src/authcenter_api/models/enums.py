"""领域枚举定义。"""

from enum import IntEnum, StrEnum


class EntityStatus(StrEnum):
    """应用、用户、角色、权限与接口的通用状态。"""

    ENABLED = "enabled"  # 正常可用，参与认证与权限判断。
    DISABLED = "disabled"  # 已禁用，登录与权限解析时跳过。


class LoginMethod(IntEnum):
    """应用登录方式。"""

    PASSWORD = 0  # 用户名 + 密码。
    CODE = 1  # 手机号 + 一次性验证码。


class AdminType(StrEnum):
    """管理员类型。"""

    SYSTEM = "system"  # 系统管理员，可管理所有应用。
    APP = "app"  # 应用管理员，仅可管理绑定的单个应用。


class TokenType(StrEnum):
    """令牌类型。"""

    ACCESS = "access"
    REFRESH = "refresh"


class SubjectKind(StrEnum):
    """令牌归属主体类型。"""

    USER = "user"  # 应用内终端用户。
    ADMIN = "admin"  # 管理员。
