import math
import os
import time
from collections.abc import Generator

# 测试环境不连接真实数据库。
os.environ.setdefault("AC_DATABASE_URL", "sqlite://")
os.environ.setdefault("AC_AUTH_JWT_SECRET", "env-access-secret-for-unit-tests")
os.environ.setdefault("AC_AUTH_JWT_REFRESH_SECRET", "env-refresh-secret-for-unit-tests")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from authcenter_api.context import AppContext
from authcenter_api.core.cache import CacheLayer
from authcenter_api.core.config import Settings
from authcenter_api.core.passwords import PasswordManager
from authcenter_api.core.security import TokenEngine
from authcenter_api.db.base import Base
from authcenter_api.db.session import create_session_factory
from authcenter_api.main import create_app
from authcenter_api.models.auth import SystemAdmin
from authcenter_api.models.enums import AdminType, EntityStatus, LoginMethod
from authcenter_api.models.permission import ApiResource, Permission, Role, RolePermission, UserRole
from authcenter_api.models.tenant import Application, User

ACCESS_SECRET = "access-secret-for-unit-tests-" * 3
REFRESH_SECRET = "refresh-secret-for-unit-tests-" * 3
DEFAULT_PASSWORD = "StrongPassw0rd!"


class FakePipeline:
    """记录命令并在 execute 时依次执行。"""

    def __init__(self, client: "FakeRedis"):
        self.client = client
        self.commands: list[tuple[str, tuple]] = []

    def sadd(self, key, *members):
        self.commands.append(("sadd", (key, *members)))
        return self

    def expire(self, key, ttl):
        self.commands.append(("expire", (key, ttl)))
        return self

    def execute(self):
        self.client._check()
        return [getattr(self.client, name)(*args) for name, args in self.commands]


class FakeRedis:
    """进程内 Redis 替身，覆盖缓存层用到的命令与过期语义。"""

    def __init__(self):
        self.values: dict[str, object] = {}
        self.expiry: dict[str, float] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    def _purge(self, key: str) -> None:
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.values.pop(key, None)
            self.expiry.pop(key, None)

    def get(self, key):
        self._check()
        self._purge(key)
        value = self.values.get(key)
        return value if isinstance(value, str) else None

    def setex(self, key, ttl, value):
        self._check()
        self.values[key] = str(value)
        self.expiry[key] = time.monotonic() + int(ttl)
        return True

    def exists(self, *keys):
        self._check()
        count = 0
        for key in keys:
            self._purge(key)
            count += int(key in self.values)
        return count

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            self.expiry.pop(key, None)
            removed += int(self.values.pop(key, None) is not None)
        return removed

    def sadd(self, key, *members):
        self._check()
        self._purge(key)
        bucket = self.values.setdefault(key, set())
        before = len(bucket)
        bucket.update(str(member) for member in members)
        return len(bucket) - before

    def smembers(self, key):
        self._check()
        self._purge(key)
        value = self.values.get(key)
        return set(value) if isinstance(value, set) else set()

    def expire(self, key, ttl):
        self._check()
        if key not in self.values:
            return False
        self.expiry[key] = time.monotonic() + int(ttl)
        return True

    def ttl(self, key):
        self._purge(key)
        if key not in self.values:
            return -2
        if key not in self.expiry:
            return -1
        return math.ceil(self.expiry[key] - time.monotonic())

    def pipeline(self):
        return FakePipeline(self)

    def ping(self):
        self._check()
        return True


class Seeder:
    """测试数据构造。"""

    def __init__(self, db: Session, passwords: PasswordManager):
        self.db = db
        self.passwords = passwords

    def _save(self, item):
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def app(
        self,
        app_id: str = "t1",
        *,
        status: str = EntityStatus.ENABLED,
        login_method: int = LoginMethod.PASSWORD,
        secret: str | None = None,
    ) -> Application:
        return self._save(
            Application(
                app_id=app_id,
                name=f"app-{app_id}",
                app_secret=secret or f"secret-{app_id}",
                status=status,
                login_method=login_method,
            )
        )

    def user(
        self,
        app_id: str,
        username: str,
        *,
        password: str = DEFAULT_PASSWORD,
        phone: str | None = None,
        status: str = EntityStatus.ENABLED,
    ) -> User:
        return self._save(
            User(
                app_id=app_id,
                username=username,
                phone=phone,
                password_hash=self.passwords.hash(password),
                is_super_admin=False,
                status=status,
            )
        )

    def role(self, app_id: str, code: str, *, status: str = EntityStatus.ENABLED) -> Role:
        return self._save(Role(app_id=app_id, name=code, code=code, status=status))

    def permission(self, app_id: str, code: str, *, status: str = EntityStatus.ENABLED) -> Permission:
        resource, _, action = code.partition(":")
        return self._save(
            Permission(app_id=app_id, name=code, code=code, resource=resource, action=action or "any", status=status)
        )

    def api(self, app_id: str, path: str, method: str, permission: Permission) -> ApiResource:
        return self._save(
            ApiResource(
                app_id=app_id,
                path=path,
                method=method.upper(),
                permission_id=permission.id,
                status=EntityStatus.ENABLED,
            )
        )

    def grant(self, role: Role, permission: Permission) -> RolePermission:
        return self._save(RolePermission(app_id=role.app_id, role_id=role.id, permission_id=permission.id))

    def assign(self, user: User, role: Role) -> UserRole:
        return self._save(UserRole(app_id=user.app_id, user_id=user.id, role_id=role.id))

    def admin(
        self,
        username: str,
        *,
        admin_type: str = AdminType.SYSTEM,
        app_id: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> SystemAdmin:
        return self._save(
            SystemAdmin(
                username=username,
                password_hash=self.passwords.hash(password),
                admin_type=admin_type,
                app_id=app_id,
                is_active=True,
            )
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        auth_jwt_secret=ACCESS_SECRET,
        auth_jwt_refresh_secret=REFRESH_SECRET,
        # 低开销哈希参数，仅用于测试。
        auth_password_memory_cost=8192,
        auth_password_parallelism=1,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheLayer:
    return CacheLayer(fake_redis)


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def passwords(settings: Settings) -> PasswordManager:
    return PasswordManager(settings)


@pytest.fixture
def seed(db: Session, passwords: PasswordManager) -> Seeder:
    return Seeder(db, passwords)


@pytest.fixture
def context(settings: Settings, session_factory, cache: CacheLayer, passwords: PasswordManager) -> AppContext:
    return AppContext(
        settings=settings,
        session_factory=session_factory,
        cache=cache,
        token_engine=TokenEngine(settings, cache),
        passwords=passwords,
    )


@pytest.fixture
def client(context: AppContext) -> Generator[TestClient, None, None]:
    with TestClient(create_app(context)) as test_client:
        yield test_client
