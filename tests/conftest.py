import asyncio
import os
import tempfile

# Settings are read at import time; configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_URL", "https://reviews.example.com/")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SENDGRID_API_KEY", "")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="review-funnel-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.deps import get_session_factory
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models import AppSettings, Base, Operator, SINGLETON_ID
from app.services.rate_limiter import FixedWindowRateLimiter, get_rate_limiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool
    )

    async def _create_tables() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(clock=clock)


@pytest.fixture
def client(session_factory, limiter):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def operator(session_factory) -> Operator:
    async def _create() -> Operator:
        async with session_factory() as session:
            operator = Operator(
                username="owner",
                email="owner@example.com",
                password_hash=get_password_hash("correct-horse"),
                is_active=True,
            )
            session.add(operator)
            await session.commit()
            return operator

    return asyncio.run(_create())


@pytest.fixture
def auth_headers(operator) -> dict[str, str]:
    token = create_access_token(data={"sub": operator.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def configure_settings(session_factory):
    """Write the settings row directly, returning a helper for tests."""

    def _configure(**values) -> None:
        async def _write() -> None:
            async with session_factory() as session:
                app_settings = await session.get(AppSettings, SINGLETON_ID)
                if app_settings is None:
                    app_settings = AppSettings(id=SINGLETON_ID)
                    session.add(app_settings)
                for key, value in values.items():
                    setattr(app_settings, key, value)
                await session.commit()

        asyncio.run(_write())

    return _configure
