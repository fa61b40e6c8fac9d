"""Database engine and session management."""
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)

from facerecall.core.exceptions import StorageError
from facerecall.core.logging import get_logger
from facerecall.infrastructure.database.models import Base

logger = get_logger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine, making sure the database directory exists.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite+aiosqlite:///path/people.db``
        echo: Log emitted SQL

    Returns:
        AsyncEngine: Engine bound to the database file
    """
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(database_url, echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by the repositories."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_database(engine: AsyncEngine) -> None:
    """Create the schema if it does not exist yet.

    Raises:
        StorageError: If the database cannot be opened or initialized
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database initialization failed", url=str(engine.url), error=str(e))
        raise StorageError(f"Could not initialize the people database: {e}") from e
    logger.info("Database initialized", url=str(engine.url))
