"""
Create all portal tables in the configured database.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --drop
"""
import argparse
import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine

from portal.config import get_settings
from portal.database import Base
import portal.models  # noqa: F401  (registers every table on Base.metadata)

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def init_db(drop: bool = False):
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        if drop:
            logger.warning("Dropping all tables")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create portal database tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    asyncio.run(init_db(args.drop))
