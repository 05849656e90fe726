"""Database startup utilities: connectivity check and schema bootstrap."""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from ledger_sync.models.base import Base

logger = logging.getLogger(__name__)


async def check_db_connection(engine: AsyncEngine) -> bool:
    """
    Test database connection for startup health checks.

    Returns:
        bool: True if connection successful, False otherwise.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


async def init_db(engine: AsyncEngine) -> None:
    """
    Create the subspaces/articles/comments tables if they do not exist yet.

    Existing tables are left untouched.
    """
    # Importing the package registers every ORM model on Base.metadata
    import ledger_sync.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database schema ready: {', '.join(sorted(Base.metadata.tables))}")
