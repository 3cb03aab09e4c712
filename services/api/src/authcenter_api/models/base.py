"""对象映射基础模型与通用混入。"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """全局对象映射声明基类。"""

    metadata = MetaData(
        naming_convention={
            # 统一约束/索引命名规范（无外键场景）。
            "pk": "pk_%(table_name)s",
            "ix": "ix_%(table_name)s_%(column_0_name)s",
            "uq": "uk_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
        }
    )


# SQLite 仅对 INTEGER 主键自增。
PrimaryKeyType = BigInteger().with_variant(Integer, "sqlite")


class IntegerPrimaryKeyMixin:
    """提供统一自增整型主键字段。"""

    id: Mapped[int] = mapped_column(PrimaryKeyType, primary_key=True, autoincrement=True, comment="主键 ID。")


class TimestampMixin:
    """提供创建时间与更新时间字段。"""

    # 记录创建时间。
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间。"
    )
    # 记录最后更新时间，更新时自动刷新。
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="更新时间。",
    )


class SoftDeleteMixin:
    """软删除标记，非空即视为已删除。"""

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), comment="删除时间。")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
