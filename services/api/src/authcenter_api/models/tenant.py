"""应用（租户）与终端用户模型。"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from authcenter_api.models.base import Base, IntegerPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin
from authcenter_api.models.enums import EntityStatus, LoginMethod


class Application(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """应用实体，系统最高数据隔离边界。"""

    __tablename__ = "applications"

    # 对外公开的应用标识（app_<uuid hex>），全局唯一。
    app_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    # 应用展示名称，未删除应用之间唯一。
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    # 应用密钥，可随时轮换，轮换后旧值立即失效。
    app_secret: Mapped[str] = mapped_column(String(128), nullable=False)
    # 应用描述。
    description: Mapped[str | None] = mapped_column(Text)
    # 应用状态（enabled/disabled）。
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=EntityStatus.ENABLED)
    # 登录方式（0 密码，1 验证码）。
    login_method: Mapped[int] = mapped_column(Integer, nullable=False, default=LoginMethod.PASSWORD)


class User(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """应用内终端用户，所属应用创建后不可变更。"""

    __tablename__ = "users"

    # 所属应用标识（逻辑关联 applications.app_id，不声明数据库外键）。
    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # 登录用户名，应用内唯一。
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    # 可选邮箱，应用内唯一。
    email: Mapped[str | None] = mapped_column(String(256))
    # 可选手机号，验证码登录使用。
    phone: Mapped[str | None] = mapped_column(String(32), index=True)
    # argon2id 口令哈希，不存明文。
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    # 应用内超级管理员标记。
    is_super_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # 用户状态（enabled/disabled）。
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=EntityStatus.ENABLED)
    # 最近一次登录时间。
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


# 唯一性只约束未删除记录，软删除后同名可重新创建。
Index(
    "uk_applications_name_active",
    Application.name,
    unique=True,
    postgresql_where=Application.deleted_at.is_(None),
    sqlite_where=Application.deleted_at.is_(None),
)
Index(
    "uk_users_app_username_active",
    User.app_id,
    User.username,
    unique=True,
    postgresql_where=User.deleted_at.is_(None),
    sqlite_where=User.deleted_at.is_(None),
)
Index(
    "uk_users_app_email_active",
    User.app_id,
    func.lower(User.email),
    unique=True,
    postgresql_where=User.deleted_at.is_(None),
    sqlite_where=User.deleted_at.is_(None),
)
