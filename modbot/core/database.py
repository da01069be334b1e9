from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.orm import declarative_base

from ..shared.utils.logger import get_logger
from .config import Environment, settings

logger = get_logger(__name__)


Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        options = {}
        if not settings.DATABASE_URL.startswith("sqlite"):
            options.update(pool_size=20, max_overflow=10, pool_timeout=30, pool_recycle=3600)
        _engine = create_async_engine(settings.DATABASE_URL, **options)
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory


@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker] = None,
) -> AsyncIterator[AsyncSession]:
    """Session that commits on success and rolls back on error."""
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    if settings.ENVIRONMENT == Environment.DEV:
        # dev creates tables directly; other environments run migrations
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    else:
        logger.info("Skipping auto table creation, migrations own the schema")


async def dispose_engine():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
