"""Event publishing port."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from rankgate.core.events.types import DomainEvent


@runtime_checkable
class EventPublisher(Protocol):
    """Receives events drained from an aggregate after a successful save."""

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        """
        Publish a batch of domain events.

        Args:
            events: Events in the order the aggregate raised them
        """
        ...


class NullEventPublisher:
    """Publisher that discards events."""

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        return None


__all__ = ["EventPublisher", "NullEventPublisher"]
