"""Database bootstrap - connectivity check and table creation."""

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models to register them with Base metadata
from enrollment_service.courses.models import *  # noqa: F403
from enrollment_service.enrollments.models import *  # noqa: F403
from enrollment_service.progress.models import *  # noqa: F403
from enrollment_service.users.models import *  # noqa: F403

from .base import Base


logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine, *, create_tables: bool = True) -> None:
    """Verify the database is reachable and create any missing tables."""
    async with db_engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        logger.info("Database connection established")

        if create_tables:
            logger.info("Creating database tables from models...")
            await conn.run_sync(Base.metadata.create_all)
            logger.info("All tables created successfully")


async def init_database_with_retry(
    db_engine: AsyncEngine,
    *,
    create_tables: bool = True,
    max_retries: int = 5,
    retry_delay: float = 1,
) -> None:
    """Initialize the database, retrying connection failures with exponential backoff."""
    for attempt in range(max_retries):
        try:
            await init_database(db_engine, create_tables=create_tables)
            return
        except OperationalError:
            if attempt == max_retries - 1:
                logger.exception("Database initialization failed after %d attempts", max_retries)
                raise

            logger.warning(
                "Database connection attempt %d failed, retrying in %ss...",
                attempt + 1,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay *= 2
