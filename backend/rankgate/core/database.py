"""Database engine, session factory and declarative base.

All tables share one ``DeclarativeBase``. Sessions are created with
``expire_on_commit=False`` so aggregates mapped from rows stay readable after
the unit of work commits.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from rankgate.core.config import DatabaseConfig
from rankgate.core.errors import InfrastructureError
from rankgate.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for every persisted table."""


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """
    Build the async engine for the configured database.

    Args:
        config: Database connection settings

    Returns:
        AsyncEngine: Engine bound to ``config.url``
    """
    engine = create_async_engine(config.url, **config.get_engine_kwargs())
    logger.debug("Database engine created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


def _import_models() -> None:
    # Registers every mapped table on Base.metadata
    from rankgate.core.events import outbox  # noqa: F401
    from rankgate.modules.community.infrastructure import models  # noqa: F401


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    _import_models()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        raise InfrastructureError(f"Schema creation failed: {e}", cause=e) from e
    logger.info("Database schema ready", tables=sorted(Base.metadata.tables))


__all__ = [
    "Base",
    "create_engine",
    "create_schema",
    "create_session_factory",
]
