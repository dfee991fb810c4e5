from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.models.base import Base

# Backends with an ON CONFLICT DO NOTHING insert (idempotent event writes)
SUPPORTED_BACKENDS = ("postgresql", "sqlite")


def create_engine(database_url: str) -> AsyncEngine:
    """Build the async engine; pool options only apply to server databases.

    Raises:
        ValueError: the URL names a backend other than PostgreSQL or SQLite.
    """
    backend = make_url(database_url).get_backend_name()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported database backend {backend!r}, use one of {SUPPORTED_BACKENDS}")
    if backend == "sqlite":
        return create_async_engine(database_url, echo=False)
    return create_async_engine(
        database_url,
        echo=False,
        pool_size=10,
        max_overflow=5,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables. Development convenience; production runs alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
