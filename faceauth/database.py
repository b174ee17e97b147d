"""
Database Connection and Session Management

This module handles database connectivity using SQLAlchemy with the asyncpg
driver for async PostgreSQL operations.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
import logging

from faceauth.config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Set to True for SQL debugging
    pool_size=DB_POOL_SIZE,
    max_overflow=DB_MAX_OVERFLOW,
    pool_pre_ping=True,  # Enable connection health checks
)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Base class for ORM models
Base = declarative_base()


async def init_db(db_engine: AsyncEngine = engine):
    """Verify connectivity and create the identities table if missing."""
    # Register the ORM models on Base.metadata
    from faceauth import models  # noqa: F401

    try:
        async with db_engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connection established successfully")
    except Exception as e:
        logger.error(f"Failed to connect to database: {e}")
        raise


async def close_db(db_engine: AsyncEngine = engine):
    """Close database connection pool."""
    await db_engine.dispose()
    logger.info("Database connection pool closed")
