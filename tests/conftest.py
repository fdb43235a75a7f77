"""Pytest fixtures for testing."""
import os

# Settings are validated at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from legaldocs.db.changes import ChangeFeed
from legaldocs.db.models import Base, Credit, Document, Profile
from legaldocs.domains.ai.providers import CompletionProvider
from legaldocs.domains.identity.entities import User


class FrozenClock:
    """Controllable replacement for utcnow."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 3, 2, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeProvider(CompletionProvider):
    """Completion provider that records calls instead of hitting the network."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[str, str]] = []
        self.error = error

    async def complete(self, prompt: str, model: str) -> str:
        self.calls.append((prompt, model))
        if self.error:
            raise self.error
        return f"Generated #{len(self.calls)}: {prompt}"


def token_for(user: User) -> str:
    return jwt.encode({"sub": str(user.id), "email": user.email}, "test-secret", algorithm="HS256")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    """File-backed SQLite so several sessions can work concurrently."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'legaldocs.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


async def create_user(session: AsyncSession, email: str, full_name: str | None = None) -> User:
    profile = Profile(email=email, full_name=full_name)
    session.add(profile)
    await session.commit()
    return User(id=profile.id, email=profile.email, full_name=profile.full_name)


@pytest.fixture
async def alice(db_session: AsyncSession) -> User:
    """Document owner."""
    return await create_user(db_session, "alice@example.com", "Alice Owner")


@pytest.fixture
async def bob(db_session: AsyncSession) -> User:
    """Second user for collaboration scenarios."""
    return await create_user(db_session, "bob@example.com", "Bob Reviewer")


@pytest.fixture
async def document_id(db_session: AsyncSession, alice: User):
    document = Document(title="Non-Disclosure Agreement", content="1. Parties...", owner_id=alice.id)
    db_session.add(document)
    await db_session.commit()
    return document.id


@pytest.fixture
async def other_document_id(db_session: AsyncSession, alice: User):
    document = Document(title="Lease Agreement", content="", owner_id=alice.id)
    db_session.add(document)
    await db_session.commit()
    return document.id


async def give_credits(session: AsyncSession, user: User, amount: int) -> None:
    session.add(Credit(user_id=user.id, amount=amount))
    await session.commit()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker,
    provider: FakeProvider,
) -> AsyncGenerator[AsyncClient]:
    """Test client wired to the test database and the fake provider."""
    from legaldocs.api.http.ai import get_completion_provider
    from legaldocs.core.db import get_db, get_session_factory
    from legaldocs.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_completion_provider] = lambda: provider

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
