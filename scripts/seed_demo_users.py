#!/usr/bin/env python3
"""
Script to seed categories and the demo accounts into the configured database.

Demo accounts are created active so they can log in straight away:
admin@sav.com / admin123, commercial@demo.com / demo123,
technicien@demo.com / demo123.
"""
import asyncio
import os
import sys
import logging
import argparse

# Add the parent directory to the path so we can import from app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings
from app.services.accounts import AccountService
from app.store import build_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


async def seed(skip_accounts: bool = False) -> None:
    """
    Seed reference data, then the demo accounts unless told otherwise.
    """
    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set, nothing to seed")
        sys.exit(1)

    store = await build_store(settings)
    try:
        if skip_accounts:
            logger.info("Categories seeded, demo accounts skipped")
            return
        created = await AccountService(store, settings).seed_demo_accounts()
        logger.info(f"Demo accounts created: {created}")
    finally:
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed categories and demo accounts")
    parser.add_argument("--categories-only", action="store_true", help="Only seed the product categories")
    args = parser.parse_args()

    asyncio.run(seed(skip_accounts=args.categories_only))
