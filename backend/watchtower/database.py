"""Database setup with SQLAlchemy async."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from watchtower.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


async def check_db_ready() -> None:
    """
    Verify database connectivity and expected schema.

    Raises RuntimeError when the locations table is missing.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

        # Works on PostgreSQL and SQLite alike.
        try:
            await conn.execute(text("SELECT 1 FROM locations LIMIT 1"))
        except Exception as e:
            raise RuntimeError(
                "Database schema is missing table: locations "
                "(run alembic upgrade head)."
            ) from e
