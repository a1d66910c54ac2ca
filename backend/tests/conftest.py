"""Shared test fixtures."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from aitasky.api.dependencies import get_vault
from aitasky.api.routes import chat, settings as settings_routes
from aitasky.core.config import FallbackKeySet, get_fallback_keys
from aitasky.core.security.encryption import CredentialVault
from aitasky.core.security.resolver import ProviderResolver
from aitasky.core.storage.credential_store import SQLCredentialStore
from aitasky.core.storage.database import Base, get_db
import aitasky.models.database  # noqa: F401

TEST_ENCRYPTION_KEY = "24bf1814a4e78643ff6a1d735327caf0c335947e32dd02108a9cfa6d1d155f61"
TEST_USER_ID = "user-123"


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Database session bound to the in-memory engine."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def vault():
    """Credential vault with a fixed test key."""
    return CredentialVault(TEST_ENCRYPTION_KEY)


@pytest.fixture
def fallback_keys():
    """House keys for openai and tavily only."""
    return FallbackKeySet({"openai": "env-openai-key", "tavily": "env-tavily-key"})


@pytest.fixture
def credential_store(db_session):
    return SQLCredentialStore(db_session)


@pytest.fixture
def resolver(credential_store, vault, fallback_keys):
    return ProviderResolver(store=credential_store, vault=vault, fallback_keys=fallback_keys)


@pytest.fixture
def app(db_session, vault, fallback_keys):
    """FastAPI app with the API routers and test collaborators."""
    app = FastAPI()
    app.include_router(chat.router, prefix="/api/v1")
    app.include_router(settings_routes.router, prefix="/api/v1")

    async def get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_vault] = lambda: vault
    app.dependency_overrides[get_fallback_keys] = lambda: fallback_keys

    return app


@pytest.fixture
async def client(app):
    """HTTP client authenticated as TEST_USER_ID."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": TEST_USER_ID},
    ) as client:
        yield client


@pytest.fixture
def user_id():
    return TEST_USER_ID
