"""Shared pytest fixtures.

Settings are read once at import time, so the environment is configured
before any ``app`` module is imported.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="bookprepper_test_"), "test.db"
)
os.environ["CACHE_BACKEND"] = "memory"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["LOG_LEVEL"] = "WARNING"

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.domain.entities import (
    Author,
    Book,
    Genre,
    Keyword,
    Prep,
    UserProfile,
    UserRole,
)
from app.domain.repositories import IUnitOfWork
from app.infrastructure.database.models import Base


class FakeUnitOfWork(IUnitOfWork):
    """Records commits and rollbacks instead of talking to a database."""

    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def transaction(self):
        try:
            yield
            self.commits += 1
        except Exception:
            self.rollbacks += 1
            raise


@pytest.fixture
def unit_of_work():
    return FakeUnitOfWork()


@pytest.fixture
def cache():
    backend = AsyncMock()
    backend.get.return_value = None
    return backend


@pytest.fixture
def reader():
    return UserProfile(
        id=uuid4(),
        subject="auth0|reader",
        email="reader@example.com",
        display_name="Reader",
        role=UserRole.MEMBER,
    )


@pytest.fixture
def admin_user():
    return UserProfile(
        id=uuid4(),
        subject="auth0|admin",
        email="admin@example.com",
        display_name="Admin",
        role=UserRole.ADMIN,
    )


@pytest.fixture
def sample_book():
    author = Author(id=uuid4(), name="Ursula K. Le Guin", slug="ursula-k-le-guin")
    book_id = uuid4()
    prep = Prep(
        id=uuid4(),
        book_id=book_id,
        heading="Shifting narrators",
        summary="Chapters alternate between two timelines.",
        keywords=[Keyword(id=uuid4(), name="Structure", slug="structure")],
        agree_votes=2,
        disagree_votes=1,
    )
    return Book(
        id=book_id,
        title="The Dispossessed",
        slug="the-dispossessed",
        author_id=author.id,
        isbn="978-0-06-051275-7",
        published_year=1974,
        author=author,
        genres=[Genre(id=uuid4(), name="Science Fiction", slug="science-fiction")],
        preps=[prep],
        prep_count=1,
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """A real session on a throwaway SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    await engine.dispose()
