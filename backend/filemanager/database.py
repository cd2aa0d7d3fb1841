"""Async SQLAlchemy engine and session factory.

Usage:
    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)

    async with session_factory() as session:
        result = await session.execute(select(FileRecord))
"""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine. Pool sizing only applies to server databases."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
