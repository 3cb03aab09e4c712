"""进程级共享资源上下文。

数据库会话工厂、Redis 缓存、令牌引擎与口令哈希器在进程启动时构建一次，
挂载到 `app.state.context`，路由依赖从请求中读取，不使用模块级全局客户端。
"""

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from authcenter_api.core.cache import CacheLayer, create_redis_client
from authcenter_api.core.config import Settings
from authcenter_api.core.passwords import PasswordManager
from authcenter_api.core.security import TokenEngine
from authcenter_api.db.session import create_db_engine, create_session_factory


@dataclass
class AppContext:
    """共享资源集合。"""

    settings: Settings
    session_factory: sessionmaker[Session]
    cache: CacheLayer
    token_engine: TokenEngine
    passwords: PasswordManager


def build_context(settings: Settings) -> AppContext:
    """按配置构建上下文，不在此处探测外部依赖连通性。"""
    cache = CacheLayer(create_redis_client(settings))
    return AppContext(
        settings=settings,
        session_factory=create_session_factory(create_db_engine(settings)),
        cache=cache,
        token_engine=TokenEngine(settings, cache),
        passwords=PasswordManager(settings),
    )


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context
