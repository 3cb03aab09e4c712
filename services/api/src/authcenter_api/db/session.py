"""数据库引擎与会话管理。"""

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from authcenter_api.core.config import Settings
from authcenter_api.errors import ConflictError


def create_db_engine(settings: Settings) -> Engine:
    """创建数据库引擎，开启连接预检查并为 PostgreSQL 设置连接池、连接与语句超时。"""
    options: dict[str, Any] = {"pool_pre_ping": True}
    if settings.database_url.startswith("postgresql"):
        timeout = settings.database_timeout_seconds
        options["pool_timeout"] = timeout
        options["connect_args"] = {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        }
    return create_engine(settings.database_url, **options)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """统一会话工厂，路由层通过依赖注入获取短生命周期会话。"""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """为每个请求提供独立数据库会话。"""
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()


def commit_unique(db: Session, *, message: str, details: dict[str, Any] | None = None) -> None:
    """提交写入，唯一索引冲突时回滚并转为 `ConflictError`。

    服务层的唯一性预检查无法覆盖并发创建，最终以数据库唯一索引为准。
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(message, details=details) from exc
