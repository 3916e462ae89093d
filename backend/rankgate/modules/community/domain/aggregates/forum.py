"""Forum aggregate.

A rank-gated chat room bound to one external chat channel. The member count
is a plain counter: ``increment_member_count`` does not enforce capacity,
because concurrent joins are serialised by the repository's versioned write
and each caller re-checks ``can_member_access`` after reloading.
"""

from typing import Any

from rankgate.core.domain.base import AggregateRoot
from rankgate.modules.community.domain.enums import ForumStatus, Rank
from rankgate.modules.community.domain.errors import (
    AlreadyArchivedError,
    ArchivedForumError,
    NegativeCountError,
)
from rankgate.modules.community.domain.events import ForumArchived
from rankgate.modules.community.domain.validation import require_int, require_text
from rankgate.modules.community.domain.value_objects.rank_hierarchy import RankHierarchy


class Forum(AggregateRoot):
    """Rank-restricted forum with capacity and an ACTIVE/ARCHIVED lifecycle."""

    aggregate_type = "Forum"

    def __init__(
        self,
        required_rank: Rank,
        tlk_channel_id: str,
        capacity: int,
        creator_id: str,
        description: str | None = None,
        status: ForumStatus = ForumStatus.ACTIVE,
        member_count: int = 0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.required_rank = required_rank
        self.tlk_channel_id = tlk_channel_id
        self.capacity = capacity
        self.creator_id = creator_id
        self.description = description
        self.status = status
        self.member_count = member_count

    @classmethod
    def create(
        cls,
        required_rank: Rank | str,
        tlk_channel_id: str,
        capacity: int,
        creator_id: str,
        description: str | None = None,
        entity_id: str | None = None,
    ) -> "Forum":
        """
        Create an ACTIVE, empty forum at version 1.

        Raises:
            InvalidArgumentError: If any field violates the forum invariants
        """
        rank = RankHierarchy.parse(required_rank, field="required_rank")
        require_text(tlk_channel_id, "tlk_channel_id")
        require_int(capacity, "capacity", minimum=1)
        require_text(creator_id, "creator_id")
        return cls(
            required_rank=rank,
            tlk_channel_id=tlk_channel_id,
            capacity=capacity,
            creator_id=creator_id,
            description=description,
            entity_id=entity_id,
        )

    @classmethod
    def reconstitute(
        cls,
        entity_id: str,
        required_rank: Rank,
        tlk_channel_id: str,
        capacity: int,
        creator_id: str,
        description: str | None,
        status: ForumStatus,
        member_count: int,
        version: int,
        created_at: int,
        updated_at: int,
    ) -> "Forum":
        return cls(
            required_rank=required_rank,
            tlk_channel_id=tlk_channel_id,
            capacity=capacity,
            creator_id=creator_id,
            description=description,
            status=status,
            member_count=member_count,
            entity_id=entity_id,
            version=version,
            created_at=created_at,
            updated_at=updated_at,
            persisted_version=version,
        )

    # ------------------------------------------------------------------ queries

    def is_active(self) -> bool:
        return self.status == ForumStatus.ACTIVE

    def is_full(self) -> bool:
        return self.member_count >= self.capacity

    @property
    def available_slots(self) -> int:
        return max(self.capacity - self.member_count, 0)

    @property
    def display_name(self) -> str:
        return self.required_rank.forum_name

    def can_member_access(self, member_rank: Rank | str) -> bool:
        """
        Hard admission check used when a member joins.

        True iff the forum is active, not full and ``member_rank`` is at least
        the required rank.

        Raises:
            InvalidArgumentError: If ``member_rank`` is not a valid rank
        """
        member_rank = RankHierarchy.parse(member_rank, field="member_rank")
        if not self.is_active():
            return False
        if self.is_full():
            return False
        return RankHierarchy.is_at_least(member_rank, self.required_rank)

    # ------------------------------------------------------------------ commands

    def increment_member_count(self) -> None:
        """
        Count one more member. Capacity is not enforced here.

        Raises:
            ArchivedForumError: If the forum is archived
        """
        self._ensure_not_archived()
        self.member_count += 1
        self.increment_version()

    def decrement_member_count(self) -> None:
        """
        Count one member fewer.

        Raises:
            ArchivedForumError: If the forum is archived
            NegativeCountError: If the count is already zero
        """
        self._ensure_not_archived()
        if self.member_count <= 0:
            raise NegativeCountError(self.id)
        self.member_count -= 1
        self.increment_version()

    def archive(self) -> None:
        """
        Archive the forum permanently.

        Raises:
            AlreadyArchivedError: If the forum is already archived
        """
        if self.status == ForumStatus.ARCHIVED:
            raise AlreadyArchivedError(self.id)

        self.status = ForumStatus.ARCHIVED
        self.increment_version()
        self.add_event(
            ForumArchived(
                forum_id=self.id,
                archived_at=self.updated_at,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type,
                aggregate_version=self.version,
            )
        )

    def _ensure_not_archived(self) -> None:
        if self.status == ForumStatus.ARCHIVED:
            raise ArchivedForumError(self.id)

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "required_rank": self.required_rank,
            "tlk_channel_id": self.tlk_channel_id,
            "capacity": self.capacity,
            "creator_id": self.creator_id,
            "description": self.description,
            "status": self.status,
            "member_count": self.member_count,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
