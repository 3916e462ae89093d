"""VC verification session store interface."""

from typing import Protocol

from rankgate.modules.community.domain.entities.vc_verification_session import (
    VCVerificationSession,
)


class IVCVerificationSessionRepository(Protocol):
    """Short-lived storage for Rank Card verification transactions."""

    async def add(self, session: VCVerificationSession) -> None:
        ...

    async def update(self, session: VCVerificationSession) -> None:
        ...

    async def get(self, transaction_id: str) -> VCVerificationSession | None:
        ...

    async def get_pending_for_member(self, member_id: str) -> VCVerificationSession | None:
        """Most recent pending transaction of the member, if any."""
        ...

    async def delete_expired(self, now: int) -> int:
        """Remove pending or expired rows whose ``expires_at`` is before ``now``.

        Returns:
            Number of rows removed
        """
        ...
