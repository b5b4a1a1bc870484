"""Pytest configuration and fixtures."""
import os

# Point the app at SQLite before anything imports app.database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import Base, build_engine, get_db
from app.rate_limit import limiter
from app.services.deps import get_gateway, get_storage
from factories import FakeGateway, FakeStorage, WEBHOOK_SECRET
from main import app


@pytest.fixture(autouse=True)
def pipeline_settings(monkeypatch):
    """Pin the secrets and rates the purchase pipeline reads from settings."""
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "PLATFORM_COMMISSION_RATE", 0.10)
    monkeypatch.setattr(settings, "CURRENCY", "usd")
    monkeypatch.setattr(settings, "MAX_PRODUCTS_PER_SELLER", 10)
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
async def test_db():
    """Create test database."""
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with AsyncSessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def file_db_sessionmaker(tmp_path):
    """Session factory over a file database so each session has its own connection."""
    engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def locking_db_sessionmaker(tmp_path):
    """File database where each transaction takes the write lock at BEGIN.

    Writers queue on the lock the way Postgres writers queue on a row lock, so
    a conditional UPDATE re-checks its predicate after the earlier commit.
    """
    engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'settle.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _manual_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def gateway():
    """Fake gateway shared by the app and the test."""
    return FakeGateway()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def client(test_db, gateway, storage):
    """Create test client bound to the test database and fake gateway."""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
