"""
Shared pytest fixtures.

Settings are read from the environment at import time, so the test values are
set here before any `app` module is imported. API tests run against an
in-memory SQLite database whose tables are created from the ORM metadata.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("RATE_LIMIT_WRITES", "10000/minute")

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_db
from app.main import app
from app.schemas.folder import FolderResponse
from app.schemas.note import NoteResponse
from app.services.auth import create_access_token

OWNER = "0x" + "ab" * 20
OTHER_OWNER = "0x" + "cd" * 20


def make_folder(folder_id: str, name: str, parent_id: str | None = None) -> FolderResponse:
    return FolderResponse(
        id=folder_id,
        name=name,
        parent_id=parent_id,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        owner_address=OWNER,
    )


def make_note(
    note_id: str,
    title: str,
    folder_id: str | None = None,
    content: str = "",
    updated_at: datetime | str = "2024-01-01T00:00:00Z",
) -> NoteResponse:
    return NoteResponse(
        id=note_id,
        title=title,
        content=content,
        folder_id=folder_id,
        created_at="2024-01-01T00:00:00Z",
        updated_at=updated_at,
        owner_address=OWNER,
    )


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


def _auth_headers(owner: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner)}"}


@pytest.fixture
async def anon_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client: AsyncClient) -> AsyncClient:
    """Client authenticated as OWNER."""
    anon_client.headers.update(_auth_headers(OWNER))
    return anon_client


@pytest.fixture
def other_headers() -> dict[str, str]:
    return _auth_headers(OTHER_OWNER)
