"""Domain event base types.

Events are raised by aggregates, queued on them and drained by the
repository after a successful write. ``to_dict`` produces the JSON-safe
payload stored in the outbox.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from rankgate.core.errors import ValidationError


@dataclass
class EventMetadata:
    """
    Event metadata for tracing and correlation.

    Usage Example:
        metadata = EventMetadata(
            aggregate_id=forum.id,
            aggregate_type="Forum",
            aggregate_version=forum.version,
        )
    """

    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: str = field(default="")
    aggregate_id: str | None = field(default=None)
    aggregate_type: str | None = field(default=None)
    aggregate_version: int = field(default=1)
    correlation_id: str | None = field(default=None)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def validate(self) -> None:
        if not self.event_type:
            raise ValidationError("event_type is required", field="event_type")
        if self.aggregate_version < 1:
            raise ValidationError(
                "aggregate_version must be positive", field="aggregate_version"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "aggregate_version": self.aggregate_version,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
        }


class DomainEvent(ABC):
    """
    Base domain event.

    Subclasses assign their payload attributes first and then call
    ``super().__init__``, which stamps metadata and validates the payload.

    Usage Example:
        class ForumArchived(DomainEvent):
            def __init__(self, forum_id: str, archived_at: int, **kwargs):
                self.forum_id = forum_id
                self.archived_at = archived_at
                super().__init__(**kwargs)

            def validate_payload(self) -> None:
                if not self.forum_id:
                    raise ValidationError("forum_id is required")
    """

    def __init__(self, metadata: EventMetadata | None = None, **kwargs: Any):
        if metadata is None:
            metadata = EventMetadata(**kwargs)
        metadata.event_type = self.__class__.__name__
        self.metadata = metadata
        self.validate()

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    @property
    def event_id(self) -> str:
        return self.metadata.event_id

    @property
    def aggregate_id(self) -> str | None:
        return self.metadata.aggregate_id

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp

    def validate(self) -> None:
        """
        Validate metadata and payload.

        Raises:
            ValidationError: If validation fails
        """
        self.metadata.validate()
        self.validate_payload()

    @abstractmethod
    def validate_payload(self) -> None:
        """
        Validate event-specific payload data.

        Raises:
            ValidationError: If validation fails
        """

    def payload(self) -> dict[str, Any]:
        """Event attributes other than metadata, converted to JSON-safe values."""
        data: dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if key == "metadata":
                continue
            if isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, datetime):
                data[key] = value.isoformat()
            else:
                data[key] = value
        return data

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "payload": self.payload(),
            "metadata": self.metadata.to_dict(),
        }

    def __str__(self) -> str:
        return f"{self.event_type}({self.metadata.aggregate_id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(event_id={self.event_id!r}, payload={self.payload()!r})"


__all__ = ["DomainEvent", "EventMetadata"]
