"""Async SQLAlchemy engine, session factory and declarative base."""
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection.

    Purchases and earnings rely on ON DELETE CASCADE, which SQLite ignores
    unless ``PRAGMA foreign_keys`` is set per connection.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Create an engine with pool settings suited to *url*'s backend."""
    if not is_sqlite(url):
        # Managed Postgres drops idle connections
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 1800)
    new_engine = create_async_engine(url, echo=echo, **kwargs)
    if is_sqlite(url):
        enable_sqlite_foreign_keys(new_engine)
    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db():
    """Yield one session per request; each request is one unit of work."""
    async with AsyncSessionLocal() as session:
        yield session


async def check_connection() -> bool:
    """Round-trip a trivial query; used by the health endpoint."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True
