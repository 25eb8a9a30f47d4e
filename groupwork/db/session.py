"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy.
PostgreSQL (asyncpg) in deployments, SQLite (aiosqlite) for local runs and tests.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from groupwork.core.config import settings


def build_engine(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite gets a generous lock timeout."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"timeout": 30})
    return create_async_engine(url, echo=echo, future=True, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Keeps data accessible after commit
    )


# Create the async database engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create a session factory
async_session_maker = build_session_factory(engine)

