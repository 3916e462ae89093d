"""
Transactional outbox.

Domain events drained from aggregates are written to ``outbox_events`` in the
same transaction as the aggregate row, so an event is stored if and only if
the state change that produced it is committed.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON, DateTime, Integer, String, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.core.errors import InfrastructureError
from rankgate.core.events.types import DomainEvent
from rankgate.core.logging import get_logger

logger = get_logger(__name__)


class OutboxEvent(BaseModel):
    """Outbox record for one domain event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    aggregate_id: str
    aggregate_type: str | None = None
    event_type: str
    event_data: dict[str, Any]
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    retry_count: int = 0
    max_retries: int = 3
    error_message: str | None = None

    @classmethod
    def from_domain_event(cls, event: DomainEvent) -> "OutboxEvent":
        return cls(
            id=event.event_id,
            aggregate_id=event.metadata.aggregate_id or "",
            aggregate_type=event.metadata.aggregate_type,
            event_type=event.event_type,
            event_data=event.to_dict(),
            created_at=event.timestamp,
        )

    def is_processed(self) -> bool:
        return self.processed_at is not None

    def can_retry(self) -> bool:
        return not self.is_processed() and self.retry_count < self.max_retries


class OutboxEventModel(Base):
    """SQLAlchemy row for an outbox event."""

    __tablename__ = "outbox_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    aggregate_id: Mapped[str] = mapped_column(String(36), index=True)
    aggregate_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    event_type: Mapped[str] = mapped_column(String(100), index=True)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, default=3)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    @classmethod
    def from_outbox_event(cls, event: OutboxEvent) -> "OutboxEventModel":
        return cls(**event.model_dump())

    def to_outbox_event(self) -> OutboxEvent:
        return OutboxEvent(
            id=self.id,
            aggregate_id=self.aggregate_id,
            aggregate_type=self.aggregate_type,
            event_type=self.event_type,
            event_data=self.event_data,
            created_at=self.created_at,
            processed_at=self.processed_at,
            retry_count=self.retry_count,
            max_retries=self.max_retries,
            error_message=self.error_message,
        )


class OutboxEventPublisher:
    """EventPublisher that stores events in the outbox table of the current session."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        if not events:
            return

        for event in events:
            self._session.add(
                OutboxEventModel.from_outbox_event(OutboxEvent.from_domain_event(event))
            )

        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise InfrastructureError(
                f"Failed to store {len(events)} events in outbox: {e}", cause=e
            ) from e

        logger.debug(
            "Events stored in outbox",
            event_count=len(events),
            event_types=[event.event_type for event in events],
        )

    async def list_unprocessed(self, limit: int = 100) -> list[OutboxEvent]:
        """Oldest unprocessed events first."""
        stmt = (
            select(OutboxEventModel)
            .where(OutboxEventModel.processed_at.is_(None))
            .order_by(OutboxEventModel.created_at)
            .limit(limit)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Failed to read outbox: {e}", cause=e) from e
        return [row.to_outbox_event() for row in result.scalars().all()]


__all__ = ["OutboxEvent", "OutboxEventModel", "OutboxEventPublisher"]
