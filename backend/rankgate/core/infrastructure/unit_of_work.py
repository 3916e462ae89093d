"""
Unit of Work for SQLAlchemy async sessions.

Owns one ``AsyncSession`` for the duration of an ``async with`` block.
Leaving the block normally commits; leaving it with an exception rolls back.
Events drained by repositories go to an ``OutboxEventPublisher`` bound to the
same session, so they are committed atomically with the aggregate rows.

Usage Example:
    async with uow_factory() as uow:
        forum = await uow.forums.find_by_id(forum_id)
        forum.archive()
        await uow.forums.save(forum)
"""

from types import TracebackType

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rankgate.core.errors import InfrastructureError
from rankgate.core.events.outbox import OutboxEventPublisher
from rankgate.core.logging import get_logger

logger = get_logger(__name__)


class UnitOfWorkError(InfrastructureError):
    """Base exception for Unit of Work operations."""

    default_code = "UNIT_OF_WORK_ERROR"
    retryable = False


class TransactionError(UnitOfWorkError):
    """Raised when committing the transaction fails."""

    default_code = "TRANSACTION_ERROR"
    retryable = True


class SQLAlchemyUnitOfWork:
    """Transactional boundary around one session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None
        self.outbox: OutboxEventPublisher | None = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise UnitOfWorkError("Unit of Work used outside its context")
        return self._session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self._session is not None:
            raise UnitOfWorkError("Unit of Work already in transaction context")
        self._session = self._session_factory()
        self.outbox = OutboxEventPublisher(self._session)
        self._bind_repositories(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is not None:
                logger.debug(
                    "Rolling back due to exception",
                    exception_type=exc_type.__name__,
                )
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self.session.close()
            self._session = None

    def _bind_repositories(self, session: AsyncSession) -> None:
        """Create repositories on the fresh session. Overridden per module."""

    async def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            TransactionError: If the database rejects the commit
        """
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TransactionError(f"Commit failed: {e}", cause=e) from e

    async def rollback(self) -> None:
        await self.session.rollback()


__all__ = ["SQLAlchemyUnitOfWork", "TransactionError", "UnitOfWorkError"]
