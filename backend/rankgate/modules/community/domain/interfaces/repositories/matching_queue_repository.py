"""Daily match queue store interface."""

from collections.abc import Collection
from typing import Protocol

from rankgate.modules.community.domain.entities.matching_queue_entry import (
    MatchingQueueEntry,
)
from rankgate.modules.community.domain.enums import Rank


class IMatchingQueueRepository(Protocol):
    """Members waiting for a daily match partner."""

    async def upsert(self, entry: MatchingQueueEntry) -> None:
        """Store ``entry``, replacing any slot the member already holds."""
        ...

    async def get(self, member_id: str) -> MatchingQueueEntry | None:
        ...

    async def find_waiting(
        self,
        ranks: Collection[Rank],
        now: int,
        exclude_member_ids: Collection[str] = (),
        limit: int = 5,
    ) -> list[MatchingQueueEntry]:
        """Unexpired entries with a rank in ``ranks``, longest waiting first."""
        ...

    async def remove(self, member_id: str) -> bool:
        """Delete the member's slot.

        Returns:
            True if this call removed it; False if it was already gone
        """
        ...

    async def delete_expired(self, now: int) -> int:
        ...
