"""Async SQLAlchemy engine and session factory.

Usage in routes:
    from storage_gateway.database import get_db

    @router.get("/files")
    async def list_files(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(FileRecord))
        return result.scalars().all()

Handlers that fan out work across concurrent tasks take the factory itself
(``get_session_factory``) and open one session per task.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from storage_gateway.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency that returns the session factory."""
    return async_session


async def get_db(factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    """FastAPI dependency that yields an async DB session."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()
