from typing import Optional
import logging

from fastapi import Request

from app.core.config import Settings, settings as default_settings
from app.store.base import DEFAULT_CATEGORIES, Store
from app.store.memory import MemoryStore

logger = logging.getLogger(__name__)

async def build_store(settings: Optional[Settings] = None) -> Store:
    """
    Pick the storage backend once at startup.

    A configured ``DATABASE_URL`` selects the SQL store; without one the
    process keeps everything in memory and loses it on restart.
    """
    settings = settings or default_settings
    if settings.DATABASE_URL:
        from app.core.database import create_engine, initialize_db
        from app.store.sql import SqlStore

        engine = create_engine(settings.DATABASE_URL, settings)
        await initialize_db(engine)
        store: Store = SqlStore(engine)
    else:
        logger.warning("DATABASE_URL not set, using in-memory store (data is lost on restart)")
        store = MemoryStore()

    await store.seed_categories(DEFAULT_CATEGORIES)
    logger.info(f"Storage backend ready: {store.name}")
    return store

def get_store(request: Request) -> Store:
    """
    Dependency returning the store built during application startup.
    """
    return request.app.state.store

__all__ = ["Store", "MemoryStore", "build_store", "get_store", "DEFAULT_CATEGORIES"]
