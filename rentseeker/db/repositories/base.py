from contextlib import asynccontextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def rollback_on_error(db: AsyncSession, action: str):
    """Rolls the session back so it stays usable, then re-raises."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error while {action}: {e}")
        await db.rollback()
        raise
