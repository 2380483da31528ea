"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection
pooling, AsyncSession for per-request database access. The engine is
built by create_app() and kept on app.state; get_db reads it from
there so tests can hand in their own engine.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the engine. SQLite URLs skip the pool sizing Postgres uses."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=15,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
