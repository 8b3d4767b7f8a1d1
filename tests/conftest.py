"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import datetime
from pathlib import Path
from typing import Any

# Disable rate limiting and the background outbox loop in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OUTBOX_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import (
    Base,
    ClientModel,
    MatterModel,
    MatterParticipantModel,
    OrganizationModel,
    OrgMemberModel,
    ProfileModel,
)
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


ORG_ID = "org_acme"

# Fixed test user (org owner) for consistency
TEST_USER_ID = "user_owner"


class DirectorySeeder:
    """Writes directory rows (orgs, members, profiles, matters) for a test."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _add(self, *models: Any) -> None:
        async with self._session_factory() as session:
            session.add_all(models)
            await session.commit()

    async def org(self, org_id: str = ORG_ID, name: str = "Acme Legal") -> None:
        await self._add(OrganizationModel(id=org_id, name=name))

    async def member(
        self,
        uid: str,
        role: str = "member",
        org_id: str = ORG_ID,
        email: str | None = "",
        display_name: str | None = None,
    ) -> None:
        """Add a member and their profile. ``email=""`` derives ``<uid>@example.com``."""
        await self._add(
            ProfileModel(
                uid=uid,
                email=f"{uid}@example.com" if email == "" else email,
                display_name=display_name,
            ),
            OrgMemberModel(org_id=org_id, uid=uid, role=role),
        )

    async def client(self, client_id: str, name: str, org_id: str = ORG_ID) -> None:
        await self._add(ClientModel(id=client_id, org_id=org_id, name=name))

    async def matter(
        self,
        matter_id: str,
        title: str = "Smith v. Jones",
        created_by: str | None = None,
        visibility: str = "ORG_WIDE",
        client_id: str | None = None,
        participants: tuple[str, ...] = (),
        deleted_at: datetime | None = None,
        org_id: str = ORG_ID,
    ) -> None:
        await self._add(
            MatterModel(
                id=matter_id,
                org_id=org_id,
                title=title,
                created_by=created_by,
                visibility=visibility,
                client_id=client_id,
                deleted_at=deleted_at,
            )
        )
        if participants:
            await self._add(
                *(MatterParticipantModel(matter_id=matter_id, uid=uid) for uid in participants)
            )


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database per test so separate connections share state."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Unit of Work factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
async def directory(session_factory: async_sessionmaker[AsyncSession]) -> DirectorySeeder:
    """Seeder with the test org and its owner already in place."""
    seeder = DirectorySeeder(session_factory)
    await seeder.org()
    await seeder.member(TEST_USER_ID, role="owner", display_name="Olivia Owner")
    return seeder


@pytest.fixture
def test_user() -> TokenUser:
    """Create a test user with fixed ID."""
    return TokenUser(
        id=TEST_USER_ID,
        email=f"{TEST_USER_ID}@example.com",
        display_name="Olivia Owner",
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_headers_for(auth_provider: JWTAuthProvider) -> Callable[[str], dict[str, str]]:
    """Build bearer headers for any uid."""

    def build(uid: str) -> dict[str, str]:
        token = auth_provider.create_token(TokenUser(id=uid, email=f"{uid}@example.com"))
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def auth_headers(auth_headers_for: Callable[[str], dict[str, str]]) -> dict[str, str]:
    """Create authorization headers for the test user."""
    return auth_headers_for(TEST_USER_ID)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no database overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client wired to the per-test database.

    Services are rebuilt on the test UoW factory and tokens are validated
    with the test auth provider, so requests carry real bearer tokens.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import (
        get_email_provider,
        get_notification_service,
        get_outbox_service,
    )
    from domain.services.notification_service import NotificationService
    from domain.services.outbox_service import OutboxService
    from infrastructure.database.session import get_async_session
    from infrastructure.email.provider import NoOpEmailProvider
    from main import create_app

    app = create_app()

    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(uow_factory)
    app.dependency_overrides[get_outbox_service] = lambda: OutboxService(uow_factory)
    app.dependency_overrides[get_email_provider] = lambda: NoOpEmailProvider()
    app.dependency_overrides[get_async_session] = override_get_async_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
