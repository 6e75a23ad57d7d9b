# rentseeker/db/session.py
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import NullPool
from rentseeker.config import settings
from rentseeker.db.base_class import Base

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> dict:
    """Driver-specific engine arguments."""
    if database_url.startswith("postgresql+psycopg://"):
        # PgBouncer in transaction mode: no pooling here, no prepared statements
        return {
            "poolclass": NullPool,
            "connect_args": {
                "application_name": "rentseeker_bot",
                "prepare_threshold": None,
            },
        }
    return {}


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
    **engine_options(settings.DATABASE_URL),
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db():
    """One session per webhook call, committed when the handler returns."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.warning("Rolling back request session")
            await session.rollback()
            raise


async def init_db(bind=None):
    """Creates any missing tables on the given engine (the app engine by default)."""
    # Importing the models registers their tables on Base.metadata
    from rentseeker.db import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


async def close_db():
    await engine.dispose()
