"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database, a recording email
dispatcher and an in-memory file store, wired into the app through
create_app().
"""

from typing import Dict, List, Optional, Set
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from county_portal.core.config import Settings
from county_portal.core.jwt import create_access_token
from county_portal.db.base import Base
from county_portal.db.session import session_scope
from county_portal.main import create_app
from county_portal.models.county import County
from county_portal.models.user import User
from county_portal.repositories.county_repository import CountyRepository
from county_portal.repositories.user_repository import UserRepository
from county_portal.services.email_service import EmailDispatcher, OutgoingEmail
from county_portal.services.storage_service import FileStorage

TEST_SECRET_KEY = "test-secret-key-for-county-portal-tests"
TEST_ADMIN_EMAIL = "admin@test.com"
TEST_PASSWORD = "Passw0rd!"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no database")
    config.addinivalue_line("markers", "api: exercises the HTTP API against an in-memory database")


class RecordingEmailDispatcher(EmailDispatcher):
    """Keeps every rendered message instead of sending it."""

    def __init__(self):
        super().__init__(app_name="County Task Portal")
        self.sent: List[OutgoingEmail] = []
        self.fail = False
        self.fail_for: Set[str] = set()

    async def send(self, message: OutgoingEmail) -> None:
        if self.fail or message.to in self.fail_for:
            raise RuntimeError("SMTP unavailable")
        self.sent.append(message)


class InMemoryFileStorage(FileStorage):
    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_delete = False

    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        self.objects[key] = data
        self.content_types[key] = content_type

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise RuntimeError("delete failed")
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def signed_url(self, key: str, expires_seconds: int) -> Optional[str]:
        if key not in self.objects:
            return None
        return f"https://files.test/{key}?expires={expires_seconds}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        SECRET_KEY=TEST_SECRET_KEY,
        REMINDER_ENABLED=False,
        REMINDER_FALLBACK_EMAIL="fallback@test.com",
        COUNTY_USER_EMAIL_DOMAIN="counties.gov",
        COUNTY_USER_DEFAULT_PASSWORD=None,
        UPLOAD_MAX_BYTES=1024,
        _env_file=None,
    )


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; take it over
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def email_dispatcher() -> RecordingEmailDispatcher:
    return RecordingEmailDispatcher()


@pytest.fixture
def file_storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture
def app(settings, session_factory, email_dispatcher, file_storage):
    return create_app(
        settings=settings,
        session_factory=session_factory,
        email_dispatcher=email_dispatcher,
        file_storage=file_storage,
        start_scheduler=False,
    )


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def create_user(
    session_factory,
    username: str,
    email: str,
    role: str = "county_user",
    county_id: Optional[UUID] = None,
    password: str = TEST_PASSWORD,
) -> User:
    async with session_scope(session_factory) as session:
        return await UserRepository(session).create(
            username=username,
            email=email,
            password=password,
            role=role,
            county_id=county_id,
        )


async def create_county(session_factory, name: str, code: str, email: str = "") -> County:
    async with session_scope(session_factory) as session:
        return await CountyRepository(session).create(name=name, code=code, email=email)


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id)}, secret_key=TEST_SECRET_KEY)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin(session_factory) -> User:
    return await create_user(session_factory, "admin", TEST_ADMIN_EMAIL, role="admin")


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return auth_headers(admin)
