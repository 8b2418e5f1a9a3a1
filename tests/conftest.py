"""
Shared test fixtures for projectgate.

Uses an in-memory SQLite database (aiosqlite) with per-test table
create/drop, and mints bearer tokens with the service's own secret.
"""

import os
from typing import Iterable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tests")

from projectgate.db.base import Base  # noqa: E402
from projectgate.main import app  # noqa: E402
import projectgate.models  # noqa: E402,F401

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_ID = "user-admin"
MANAGER_ID = "user-manager"
OTHER_MANAGER_ID = "user-other-manager"
MEMBER_ID = "user-member"
SECOND_MEMBER_ID = "user-member-2"
OUTSIDER_ID = "user-outsider"


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine):
    """Fresh tables per test: create → yield session → drop."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ---------------------------------------------------------------------------
# Test client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session):
    from projectgate.db.session import get_db
    from projectgate.api.v1.helpers.authentication import JWTAuthenticationProvider
    from projectgate.api.v1.helpers.auth_interface import PolicyAuthorizationProvider
    from projectgate.api.v1.helpers.directory import SqlProjectDirectory

    async def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    app.state.authentication_provider = JWTAuthenticationProvider()
    app.state.authorization_provider = PolicyAuthorizationProvider()
    app.state.project_directory = SqlProjectDirectory()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Build bearer headers for ``(user_id, role)``."""
    from projectgate.api.v1.helpers.authentication import create_access_token

    def _headers(user_id: str, role: str = "TeamMember") -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

    return _headers


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def project_factory(db_session):
    from projectgate.models.iam.projects import Project
    from projectgate.models.iam.relationships import project_members

    async def _create(
        title: str = "Test Project",
        manager_user_id: str | None = MANAGER_ID,
        members: Iterable[str] = (),
    ) -> Project:
        project = Project(
            title=title, manager_user_id=manager_user_id, created_by=manager_user_id
        )
        db_session.add(project)
        await db_session.flush()
        for user_id in members:
            await db_session.execute(
                project_members.insert().values(
                    project_id=project.project_id, user_id=user_id
                )
            )
        await db_session.commit()
        return project

    return _create


@pytest_asyncio.fixture(scope="function")
async def grant_factory(db_session):
    """Write grant rows directly, bypassing validation (to seed bad data too)."""
    from projectgate.models.iam.permissions import (
        ProjectMemberPermission,
        ProjectPermission,
    )

    async def _create(project_id: str, user_id: str, tokens: Iterable[str]):
        record = ProjectMemberPermission(
            project_id=project_id,
            user_id=user_id,
            permissions=[ProjectPermission(name=token) for token in tokens],
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _create


@pytest_asyncio.fixture(scope="function")
async def project(project_factory):
    """Project managed by MANAGER_ID with two team members and a second PM."""
    return await project_factory(
        title="Website Redesign",
        members=[MEMBER_ID, SECOND_MEMBER_ID, OTHER_MANAGER_ID],
    )
