"""SQLAlchemy repository base for versioned aggregates.

Every aggregate repository shares the same write contract:

- ``compare_and_swap(id, expected_version, new_state)`` performs a single
  conditional ``UPDATE ... WHERE id = :id AND version = :expected`` and
  reports ``SUCCESS``, ``CONFLICT`` or ``NOT_FOUND`` without raising.
- ``save(aggregate)`` inserts aggregates that were never stored and otherwise
  delegates to ``compare_and_swap`` using the version the aggregate was loaded
  with. Any outcome other than ``SUCCESS`` raises ``OptimisticLockError``.
- After a successful write the aggregate's pending events are drained once
  and handed to the configured ``EventPublisher``.

Failure kinds stay distinct so callers can pick a retry policy:
``OptimisticLockError`` (reload and retry), ``UniqueConstraintError``
(surface to caller) and ``RepositoryError`` (storage failure).

Repositories flush but never commit; the unit of work owns the transaction.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rankgate.core.database import Base
from rankgate.core.domain.base import AggregateRoot
from rankgate.core.errors import ConflictError, InfrastructureError
from rankgate.core.events.publisher import EventPublisher, NullEventPublisher
from rankgate.core.logging import get_logger

logger = get_logger(__name__)

TAggregate = TypeVar("TAggregate", bound=AggregateRoot)
TModel = TypeVar("TModel", bound=Base)


# =====================================================================================
# ERRORS
# =====================================================================================


class RepositoryError(InfrastructureError):
    """Underlying storage failure."""

    default_code = "REPOSITORY_ERROR"


class OptimisticLockError(ConflictError):
    """The stored version no longer matches the version the caller loaded."""

    default_code = "OPTIMISTIC_LOCK_CONFLICT"
    retryable = True

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int,
        actual_version: int | None = None,
        **kwargs: Any,
    ) -> None:
        if actual_version is None:
            message = (
                f"{entity_type} {entity_id} disappeared while expecting version "
                f"{expected_version}"
            )
        else:
            message = (
                f"{entity_type} {entity_id} was modified concurrently: expected "
                f"version {expected_version}, found {actual_version}"
            )
        kwargs.setdefault("user_message", "The resource changed while you were editing it")
        kwargs.setdefault("recovery_hint", "Reload and try again")
        super().__init__(message, resource=entity_type, **kwargs)
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.details.update(
            {
                "entity_id": entity_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            }
        )


class UniqueConstraintError(ConflictError):
    """A unique external identifier is already taken."""

    default_code = "UNIQUE_CONSTRAINT_VIOLATION"

    def __init__(
        self, entity_type: str, field_name: str, field_value: Any, **kwargs: Any
    ) -> None:
        message = f"{entity_type} with {field_name}={field_value!r} already exists"
        super().__init__(message, resource=entity_type, **kwargs)
        self.entity_type = entity_type
        self.field_name = field_name
        self.field_value = field_value
        self.details["field"] = field_name


class CompareAndSwapResult(Enum):
    """Outcome of a conditional versioned write."""

    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


# =====================================================================================
# REPOSITORY BASE
# =====================================================================================


class SQLAggregateRepository(ABC, Generic[TAggregate, TModel]):
    """
    Base repository for one aggregate type mapped to one table.

    Subclasses provide ``_to_domain`` and ``_to_row`` and list their unique
    columns in ``unique_fields`` (column name to domain field name) so that
    integrity errors can be reported per field.
    """

    model_class: type[TModel]
    aggregate_name: str = "Aggregate"
    unique_fields: Mapping[str, str] = {}

    def __init__(
        self, session: AsyncSession, event_publisher: EventPublisher | None = None
    ):
        self._session = session
        self._publisher = event_publisher or NullEventPublisher()

    # ------------------------------------------------------------------ mapping

    @abstractmethod
    def _to_domain(self, model: TModel) -> TAggregate:
        """Rebuild the aggregate from a row."""

    @abstractmethod
    def _to_row(self, aggregate: TAggregate) -> dict[str, Any]:
        """Column values for the aggregate, including ``id`` and ``version``."""

    # ------------------------------------------------------------------ writes

    async def save(self, aggregate: TAggregate) -> TAggregate:
        """
        Persist the aggregate with an optimistic-locked write.

        Args:
            aggregate: Aggregate to store

        Returns:
            The same aggregate, now marked as persisted with no pending events

        Raises:
            OptimisticLockError: Row changed or vanished since it was loaded
            UniqueConstraintError: A unique column value is already taken
            RepositoryError: Any other storage failure
        """
        row = self._to_row(aggregate)

        if aggregate.is_new:
            await self._insert(row)
        else:
            expected = aggregate.persisted_version
            result = await self.compare_and_swap(aggregate.id, expected, row)
            if result is not CompareAndSwapResult.SUCCESS:
                actual = (
                    await self._current_version(aggregate.id)
                    if result is CompareAndSwapResult.CONFLICT
                    else None
                )
                logger.warning(
                    "Optimistic lock conflict",
                    aggregate=self.aggregate_name,
                    aggregate_id=aggregate.id,
                    expected_version=expected,
                    actual_version=actual,
                    outcome=result.value,
                )
                raise OptimisticLockError(
                    self.aggregate_name, aggregate.id, expected, actual
                )

        aggregate.mark_persisted()
        events = aggregate.drain_events()
        if events:
            await self._publisher.publish(events)

        logger.debug(
            "Aggregate saved",
            aggregate=self.aggregate_name,
            aggregate_id=aggregate.id,
            version=aggregate.version,
            events=len(events),
        )
        return aggregate

    async def compare_and_swap(
        self, aggregate_id: str, expected_version: int, new_state: Mapping[str, Any]
    ) -> CompareAndSwapResult:
        """
        Write ``new_state`` only if the stored version equals ``expected_version``.

        Args:
            aggregate_id: Row identifier
            expected_version: Version the caller believes is stored
            new_state: Column values to write, including the new ``version``

        Returns:
            CompareAndSwapResult: SUCCESS, CONFLICT or NOT_FOUND

        Raises:
            UniqueConstraintError: The new state collides with another row
            RepositoryError: Storage failure
        """
        values = {k: v for k, v in new_state.items() if k != "id"}
        stmt = (
            update(self.model_class)
            .where(
                self.model_class.id == aggregate_id,
                self.model_class.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self._session.execute(stmt)
        except IntegrityError as e:
            raise self._translate_integrity_error(e, new_state) from e
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to update {self.aggregate_name} {aggregate_id}: {e}", cause=e
            ) from e

        if result.rowcount == 1:
            return CompareAndSwapResult.SUCCESS

        if await self._current_version(aggregate_id) is None:
            return CompareAndSwapResult.NOT_FOUND
        return CompareAndSwapResult.CONFLICT

    async def delete(self, aggregate_id: str) -> bool:
        """
        Delete the row if present.

        Returns:
            bool: True when a row was removed, False when it was already gone
        """
        stmt = (
            delete(self.model_class)
            .where(self.model_class.id == aggregate_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to delete {self.aggregate_name} {aggregate_id}: {e}", cause=e
            ) from e
        return result.rowcount > 0

    async def _insert(self, row: dict[str, Any]) -> None:
        self._session.add(self.model_class(**row))
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise self._translate_integrity_error(e, row) from e
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to insert {self.aggregate_name} {row.get('id')}: {e}", cause=e
            ) from e

    def _translate_integrity_error(
        self, error: IntegrityError, row: Mapping[str, Any]
    ) -> Exception:
        message = str(error.orig) if error.orig is not None else str(error)
        for column, field_name in self.unique_fields.items():
            if column in message:
                return UniqueConstraintError(
                    self.aggregate_name, field_name, row.get(column), cause=error
                )
        return RepositoryError(
            f"Integrity error on {self.aggregate_name}: {message}", cause=error
        )

    # ------------------------------------------------------------------ reads

    async def find_by_id(self, aggregate_id: str) -> TAggregate | None:
        return await self._find_one(
            select(self.model_class).where(self.model_class.id == aggregate_id)
        )

    async def exists(self, aggregate_id: str) -> bool:
        return await self._current_version(aggregate_id) is not None

    async def _current_version(self, aggregate_id: str) -> int | None:
        stmt = select(self.model_class.version).where(self.model_class.id == aggregate_id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to read {self.aggregate_name} version: {e}", cause=e
            ) from e
        return result.scalar_one_or_none()

    async def _find_one(self, stmt: Select) -> TAggregate | None:
        rows = await self._fetch(stmt.limit(1))
        return self._to_domain(rows[0]) if rows else None

    async def _find_many(self, stmt: Select) -> list[TAggregate]:
        return [self._to_domain(row) for row in await self._fetch(stmt)]

    async def _fetch(self, stmt: Select) -> list[TModel]:
        # Rows may have been rewritten by a bulk UPDATE in this session
        stmt = stmt.execution_options(populate_existing=True)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to query {self.aggregate_name}: {e}", cause=e
            ) from e
        return list(result.scalars().all())

    async def _exists_where(self, *criteria: Any) -> bool:
        stmt = select(func.count()).select_from(self.model_class).where(*criteria)
        return await self._scalar(stmt) > 0

    async def _count_where(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*criteria)
        return await self._scalar(stmt)

    async def _scalar(self, stmt: Select) -> Any:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to query {self.aggregate_name}: {e}", cause=e
            ) from e
        return result.scalar_one()


__all__ = [
    "CompareAndSwapResult",
    "OptimisticLockError",
    "RepositoryError",
    "SQLAggregateRepository",
    "UniqueConstraintError",
]
