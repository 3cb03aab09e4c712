"""认证相关模型。"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from authcenter_api.models.base import Base, IntegerPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin
from authcenter_api.models.enums import SubjectKind


class TokenRecord(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """已签发令牌记录。

    被新令牌取代的旧记录不会自动清理，吊销状态以黑名单为准。
    """

    __tablename__ = "tokens"

    # 所属应用标识，系统管理员令牌为空。
    app_id: Mapped[str | None] = mapped_column(String(64), index=True)
    # 主体类型（user/admin）。
    subject_kind: Mapped[str] = mapped_column(String(16), nullable=False, default=SubjectKind.USER)
    # 主体 ID（users.id 或 system_admins.id）。
    subject_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    # 令牌唯一标识。
    jti: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    # 已签名令牌原文。
    token: Mapped[str] = mapped_column(Text, nullable=False)
    # 令牌类型（access/refresh）。
    token_type: Mapped[str] = mapped_column(String(16), nullable=False)
    # 过期时间。
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SystemAdmin(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """管理员账号，独立于应用用户体系。"""

    __tablename__ = "system_admins"

    # 登录用户名，未删除管理员之间唯一。
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str | None] = mapped_column(String(256))
    phone: Mapped[str | None] = mapped_column(String(32))
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    # 管理员类型（system/app）。
    admin_type: Mapped[str] = mapped_column(String(16), nullable=False)
    # 应用管理员绑定的应用标识，系统管理员为空。
    app_id: Mapped[str | None] = mapped_column(String(64), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


Index(
    "uk_system_admins_username_active",
    SystemAdmin.username,
    unique=True,
    postgresql_where=SystemAdmin.deleted_at.is_(None),
    sqlite_where=SystemAdmin.deleted_at.is_(None),
)
Index(
    "uk_system_admins_email_active",
    func.lower(SystemAdmin.email),
    unique=True,
    postgresql_where=SystemAdmin.deleted_at.is_(None),
    sqlite_where=SystemAdmin.deleted_at.is_(None),
)
