"""角色、权限、接口资源及其关联模型。"""

from sqlalchemy import BigInteger, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authcenter_api.models.base import Base, IntegerPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin
from authcenter_api.models.enums import EntityStatus


class Role(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """应用内角色，编码在应用内唯一。"""

    __tablename__ = "roles"

    # 所属应用标识。
    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # 角色名称。
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    # 角色编码（如 editor）。
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=EntityStatus.ENABLED)


class Permission(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """权限点。

    说明：
    1. 编码不要求唯一，不同资源/动作组合可共享同一编码。
    2. 权限判断按编码字符串精确匹配。
    """

    __tablename__ = "permissions"

    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    # 权限编码（如 doc:write）。
    code: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    # 资源类型（如 doc）。
    resource: Mapped[str] = mapped_column(String(64), nullable=False)
    # 动作（如 write）。
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=EntityStatus.ENABLED)


class ApiResource(Base, IntegerPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """接口资源，(path, method) 绑定到唯一权限点。"""

    __tablename__ = "apis"

    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # 接口路径（如 /reports）。
    path: Mapped[str] = mapped_column(String(256), nullable=False)
    # 大写 HTTP 方法。
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # 绑定的权限点 ID（逻辑关联 permissions.id）。
    permission_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=EntityStatus.ENABLED)


class RolePermission(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """角色权限关联，集合语义。"""

    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role_id", "permission_id", name="uk_role_permission"),)

    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    permission_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


class UserRole(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    """用户角色关联，集合语义。"""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uk_user_role"),)

    app_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    role_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


Index(
    "uk_roles_app_code_active",
    Role.app_id,
    Role.code,
    unique=True,
    postgresql_where=Role.deleted_at.is_(None),
    sqlite_where=Role.deleted_at.is_(None),
)
Index(
    "uk_apis_app_path_method_active",
    ApiResource.app_id,
    ApiResource.path,
    ApiResource.method,
    unique=True,
    postgresql_where=ApiResource.deleted_at.is_(None),
    sqlite_where=ApiResource.deleted_at.is_(None),
)
