"""
Top-level pytest configuration.

Provides:
  - A test SQLite database (aiosqlite) with all tables created fresh per test.
  - A db_session fixture that rolls back each test in a transaction.
  - An async_client fixture wired to the FastAPI app.
  - Staff users for three roles (admin, recruiter, viewer) with bearer tokens.
"""

from __future__ import annotations

import os
import uuid
from typing import AsyncGenerator

# ---------------------------------------------------------------------------
# Environment must be set BEFORE any app module is imported so that
# pydantic-settings picks up the test values.
# ---------------------------------------------------------------------------
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-32c")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)


def _patch_postgres_types_for_sqlite(metadata) -> None:
    """
    Replace PostgreSQL-specific column types that SQLite cannot compile.

    SQLAlchemy's UUID(as_uuid=True) and JSON both render fine on SQLite, but
    JSONB (from sqlalchemy.dialects.postgresql) does not.  Walk the metadata
    before DDL generation and swap any JSONB column for a plain JSON column.
    """
    from sqlalchemy.dialects.postgresql import JSONB

    for table in metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()


# ---------------------------------------------------------------------------
# Test engine (SQLite in-memory, shared via StaticPool so all connections see
# the same data within a test).
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine():
    """Create the SQLite test engine and all tables for one test."""
    from app.core.database import Base

    # Register every table on Base.metadata
    import app.models  # noqa: F401

    # Swap JSONB → JSON so SQLite can render the DDL
    _patch_postgres_types_for_sqlite(Base.metadata)

    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


# ---------------------------------------------------------------------------
# Per-test DB session that rolls back after each test for isolation.
#
# Services call ``await db.commit()`` after their writes. A custom
# NonCommittingSession turns commit() into flush(), so the writes stay inside
# an outer transaction that is rolled back at teardown.
# ---------------------------------------------------------------------------
class _NonCommittingSession(AsyncSession):
    """AsyncSession subclass where commit() becomes flush()."""

    async def commit(self) -> None:  # type: ignore[override]
        await self.flush()


@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a per-test database session that is fully rolled back on teardown."""
    async with engine.connect() as conn:
        await conn.begin()

        session = _NonCommittingSession(
            bind=conn,
            expire_on_commit=False,
        )

        try:
            yield session
        finally:
            await session.close()
            await conn.rollback()


# ---------------------------------------------------------------------------
# Override FastAPI database dependency to use the test session.
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an httpx AsyncClient backed by the FastAPI app.

    The app's get_db dependency is overridden to yield the test session so all
    requests in a test share the same transactional session and thus see any
    data seeded in that test.
    """
    from app.core.database import get_db
    from app.main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seeded staff users
# ---------------------------------------------------------------------------
async def _create_staff(db_session: AsyncSession, role, email: str):
    from app.models.user import StaffUser

    user = StaffUser(
        id=uuid.uuid4(),
        email=email,
        full_name=email.split("@")[0].title(),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession):
    from app.models.user import StaffRole
    return await _create_staff(db_session, StaffRole.ADMIN, "admin@agency.test")


@pytest_asyncio.fixture
async def recruiter_user(db_session: AsyncSession):
    from app.models.user import StaffRole
    return await _create_staff(db_session, StaffRole.RECRUITER, "recruiter@agency.test")


@pytest_asyncio.fixture
async def viewer_user(db_session: AsyncSession):
    from app.models.user import StaffRole
    return await _create_staff(db_session, StaffRole.VIEWER, "viewer@agency.test")


def _bearer(user) -> dict[str, str]:
    from tests.factories import bearer_headers
    return bearer_headers(user)


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return _bearer(admin_user)


@pytest.fixture
def recruiter_headers(recruiter_user) -> dict[str, str]:
    return _bearer(recruiter_user)


@pytest.fixture
def viewer_headers(viewer_user) -> dict[str, str]:
    return _bearer(viewer_user)
