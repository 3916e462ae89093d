"""Private chat session repository interface."""

from collections.abc import Mapping
from typing import Any, Protocol

from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)
from rankgate.modules.community.domain.enums import SessionStatus, SessionType


class IPrivateChatSessionRepository(Protocol):
    """Persistence port for PrivateChatSession aggregates."""

    async def save(self, session: PrivateChatSession) -> PrivateChatSession:
        ...

    async def compare_and_swap(
        self, session_id: str, expected_version: int, new_state: Mapping[str, Any]
    ) -> Any:
        ...

    async def find_by_id(self, session_id: str) -> PrivateChatSession | None:
        ...

    async def find_by_tlk_channel_id(self, tlk_channel_id: str) -> PrivateChatSession | None:
        ...

    async def find_active_sessions_for_member(self, member_id: str) -> list[PrivateChatSession]:
        """ACTIVE sessions the member takes part in, newest first."""
        ...

    async def find_active_session_between_members(
        self, first_member_id: str, second_member_id: str
    ) -> PrivateChatSession | None:
        """The ACTIVE session between two members in either order, if any."""
        ...

    async def find_expired_sessions(self, cutoff: int) -> list[PrivateChatSession]:
        """ACTIVE sessions with ``expires_at <= cutoff``, soonest first.

        Args:
            cutoff: Epoch milliseconds; may include a grace period

        Returns:
            Sessions still marked ACTIVE whose expiry time has been reached
        """
        ...

    async def find_by_status(self, status: SessionStatus) -> list[PrivateChatSession]:
        ...

    async def find_by_type(self, session_type: SessionType) -> list[PrivateChatSession]:
        ...

    async def count_by_status(self, status: SessionStatus) -> int:
        ...

    async def count_active_expiring_between(self, start: int, end: int) -> int:
        """ACTIVE sessions with ``start < expires_at <= end``."""
        ...

    async def delete(self, session_id: str) -> bool:
        ...

    async def exists_by_tlk_channel_id(self, tlk_channel_id: str) -> bool:
        ...
