"""Domain primitives shared by every bounded context.

Design Principles:
- Pure Python classes with explicit validation
- No I/O and no logging inside domain objects
- Identity-based entities, attribute-based value objects
- Aggregates queue domain events until the persistence layer drains them

Architecture:
- ValueObject: Immutable objects representing domain concepts
- Entity: Mutable objects with identity and epoch-millisecond timestamps
- AggregateRoot: Entities carrying a version and pending domain events
- DomainService: Stateless domain logic coordinators
"""

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from rankgate.core.events.types import DomainEvent


def utc_now_ms() -> int:
    """Current UTC time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


def new_id() -> str:
    """Generate an opaque aggregate identifier."""
    return str(uuid4())


# =====================================================================================
# VALUE OBJECT BASE CLASS
# =====================================================================================


class ValueObject(ABC):
    """
    Base value object.

    Subclasses validate in ``__init__``, assign their attributes and finish
    with ``self._freeze()``. Equality and hashing use public attributes.
    """

    def __init__(self):
        self._frozen = False

    def _freeze(self) -> None:
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"Cannot modify immutable {self.__class__.__name__}")
        super().__setattr__(name, value)

    def _public_attrs(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self._public_attrs() == other._public_attrs()

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, tuple(sorted(self._public_attrs().items()))))

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self._public_attrs().items())
        return f"{self.__class__.__name__}({attrs})"

    @abstractmethod
    def __str__(self) -> str:
        """String representation. Must be implemented by subclasses."""

    def to_dict(self) -> dict[str, Any]:
        return {
            k: (v.value if hasattr(v, "value") else v)
            for k, v in self._public_attrs().items()
        }


# =====================================================================================
# ENTITY BASE CLASS
# =====================================================================================


class Entity(ABC):
    """
    Base entity with identity and timestamps.

    ``created_at`` and ``updated_at`` are epoch milliseconds. ``created_at``
    never changes; ``updated_at`` only moves forward.
    """

    def __init__(
        self,
        entity_id: str | None = None,
        created_at: int | None = None,
        updated_at: int | None = None,
    ):
        self.id = entity_id or new_id()
        self.created_at = utc_now_ms() if created_at is None else created_at
        self.updated_at = self.created_at if updated_at is None else updated_at

    def mark_modified(self) -> None:
        """Refresh ``updated_at`` without ever moving it backwards."""
        self.updated_at = max(utc_now_ms(), self.updated_at)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, self.id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id}, created_at={self.created_at})"

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"


# =====================================================================================
# AGGREGATE ROOT CLASS
# =====================================================================================


class AggregateRoot(Entity):
    """
    Aggregate root with domain event management and optimistic versioning.

    Every successful mutating operation calls ``increment_version()`` exactly
    once. ``persisted_version`` records the version the backing row held when
    the aggregate was loaded or last saved; it is 0 for aggregates that have
    never been written. Repositories use it as the expected version of their
    conditional write.

    Usage Example:
        class Forum(AggregateRoot):
            def archive(self) -> None:
                if self.status == ForumStatus.ARCHIVED:
                    raise AlreadyArchivedError(self.id)
                self.status = ForumStatus.ARCHIVED
                self.increment_version()
                self.add_event(ForumArchived(...))
    """

    aggregate_type: str = "Aggregate"

    def __init__(
        self,
        entity_id: str | None = None,
        version: int = 1,
        created_at: int | None = None,
        updated_at: int | None = None,
        persisted_version: int = 0,
    ):
        super().__init__(entity_id, created_at, updated_at)
        self._events: list["DomainEvent"] = []
        self._version = version
        self._persisted_version = persisted_version

    def add_event(self, event: "DomainEvent") -> None:
        """Queue a domain event until the aggregate is persisted."""
        self._events.append(event)

    def drain_events(self) -> list["DomainEvent"]:
        """
        Remove and return all pending events.

        Returns:
            list[DomainEvent]: Events in the order they were raised
        """
        events = self._events.copy()
        self._events.clear()
        return events

    def get_events(self) -> list["DomainEvent"]:
        """Copy of pending events without clearing them."""
        return self._events.copy()

    def increment_version(self) -> None:
        """Increment aggregate version for optimistic locking."""
        self._version += 1
        self.mark_modified()

    def mark_persisted(self) -> None:
        """Record that the current version is now stored."""
        self._persisted_version = self._version

    @property
    def version(self) -> int:
        """Get current aggregate version."""
        return self._version

    @property
    def persisted_version(self) -> int:
        """Version of the stored row this instance was derived from."""
        return self._persisted_version

    @property
    def is_new(self) -> bool:
        return self._persisted_version == 0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"id={self.id}, "
            f"version={self._version}, "
            f"events={len(self._events)})"
        )


# =====================================================================================
# DOMAIN SERVICE BASE CLASS
# =====================================================================================


class DomainService(ABC):
    """
    Base class for domain services.

    Domain services hold logic spanning several aggregates. They depend on
    repository ports, never on concrete infrastructure.
    """

    @abstractmethod
    def __str__(self) -> str:
        """Human-readable service name."""


__all__ = [
    "AggregateRoot",
    "DomainService",
    "Entity",
    "ValueObject",
    "new_id",
    "utc_now_ms",
]
