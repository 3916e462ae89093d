"""Forum repository interface."""

from collections.abc import Mapping
from typing import Any, Protocol

from rankgate.modules.community.domain.aggregates.forum import Forum
from rankgate.modules.community.domain.enums import Rank


class IForumRepository(Protocol):
    """Persistence port for Forum aggregates."""

    async def save(self, forum: Forum) -> Forum:
        """Insert or conditionally update the forum and publish its events.

        Raises:
            OptimisticLockError: The stored version changed since load
            UniqueConstraintError: ``tlk_channel_id`` already used
        """
        ...

    async def compare_and_swap(
        self, forum_id: str, expected_version: int, new_state: Mapping[str, Any]
    ) -> Any:
        ...

    async def find_by_id(self, forum_id: str) -> Forum | None:
        ...

    async def find_by_tlk_channel_id(self, tlk_channel_id: str) -> Forum | None:
        ...

    async def find_by_required_rank(self, rank: Rank) -> list[Forum]:
        """Active forums requiring exactly ``rank``."""
        ...

    async def find_active_forums(self) -> list[Forum]:
        ...

    async def find_accessible_forums(self, member_rank: Rank) -> list[Forum]:
        """Active, non-full forums whose required rank is adjacent to ``member_rank``.

        Args:
            member_rank: Derived rank of a verified member

        Returns:
            Forums ordered by required rank, then creation time
        """
        ...

    async def delete(self, forum_id: str) -> bool:
        ...

    async def exists_by_tlk_channel_id(self, tlk_channel_id: str) -> bool:
        ...
