import os

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Settings are cached on first import, so the environment has to be in place first
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DB_LOGGING_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_DEFAULT"] = "10000/minute"
os.environ["RATE_LIMIT_AUTH"] = "10000/minute"
os.environ["TEST_EMAIL_DOMAIN"] = "example.com"
os.environ["RESEND_API_KEY"] = ""
os.environ.pop("SEED_ADMIN_PASSWORD", None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fansite.core.security import create_access_token, hash_password
from fansite.db import models  # noqa: F401  (registers tables on Base.metadata)
from fansite.db.database import Base, get_db
from fansite.db.models import User, UserRole
from fansite.main import app

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_factory):
    async def get_db_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_db_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def add(session_factory):
    """Persist rows in a short-lived session and hand them back with ids assigned."""

    async def _add(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows[0] if len(rows) == 1 else rows

    return _add


@pytest_asyncio.fixture
async def make_user(add):
    async def _make(
        username: str,
        role: UserRole = UserRole.USER,
        progress: int = 0,
        verified: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        return await add(User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role=role.value,
            is_email_verified=verified,
            user_progress=progress,
        ))

    return _make


@pytest_asyncio.fixture
async def user(make_user):
    return await make_user("reader")


@pytest_asyncio.fixture
async def moderator(make_user):
    return await make_user("mod", role=UserRole.MODERATOR)


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("boss", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers


@pytest.fixture
def default_password():
    return DEFAULT_PASSWORD
