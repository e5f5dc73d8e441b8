from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.core.errors import DependencyError
from app.db.base import Base
import logging

logger = logging.getLogger(__name__)

def normalize_database_url(db_url: str) -> str:
    """
    Convert a plain Postgres URL to use the asyncpg driver.
    """
    # If using postgresql://, convert to postgresql+asyncpg://
    if db_url.startswith('postgresql://'):
        return db_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    # If using postgres:// (Supabase connection strings), convert to postgresql+asyncpg://
    if db_url.startswith('postgres://'):
        return db_url.replace('postgres://', 'postgresql+asyncpg://', 1)
    return db_url

def create_engine(db_url: str, settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async engine with connection pooling for Postgres.
    """
    settings = settings or default_settings
    db_url = normalize_database_url(db_url)
    if not db_url.startswith('postgresql+asyncpg://'):
        # sqlite and friends manage their own pools
        return create_async_engine(db_url, echo=settings.SQL_ECHO, future=True)

    logger.info("Using async database connection with asyncpg")
    return create_async_engine(
        db_url,
        echo=settings.SQL_ECHO,  # Set to True for debugging SQL queries
        future=True,
        pool_pre_ping=True,  # Verify connections before using them
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        connect_args={
            "command_timeout": settings.DB_COMMAND_TIMEOUT,
        }
    )

def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False
    )

async def initialize_db(engine: AsyncEngine) -> bool:
    """
    Verify the connection and create missing tables.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Failed to connect to database: {e}")
        raise DependencyError("Database unavailable") from e
    logger.info("Database connection initialized successfully")
    return True

