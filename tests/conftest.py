"""Shared test fixtures.

Tests run against an in-memory SQLite database; each test gets a fresh
schema. Redis is never initialized, so event publishing is skipped unless a
test passes its own client.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import replace
from datetime import date

os.environ["STUDYQUEST_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STUDYQUEST_LOG_FORMAT"] = "console"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.config import get_settings
from studyquest.database import close_db, get_engine, init_db
from studyquest.db import models  # noqa: F401
from studyquest.db.base import Base
from studyquest.progression import store
from studyquest.progression.counters import UserCounters
from studyquest.progression.leveling import LevelState

get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory schema for one test."""
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app, sharing the test database."""
    from studyquest.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[UserCounters]]:
    """Factory: create a committed user, optionally with preset counters."""

    async def _make(
        *,
        total_documents: int = 0,
        total_flashcards: int = 0,
        total_quizzes: int = 0,
        study_streak: int = 0,
        last_study_date: date | None = None,
        level: LevelState | None = None,
        display_name: str | None = None,
    ) -> UserCounters:
        counters = await store.create_user(db_session, display_name=display_name)
        counters = replace(
            counters,
            total_documents=total_documents,
            total_flashcards=total_flashcards,
            total_quizzes=total_quizzes,
            study_streak=study_streak,
            last_study_date=last_study_date,
            level=level or counters.level,
        )
        await store.save_user(db_session, counters)
        await db_session.commit()
        return counters

    return _make
