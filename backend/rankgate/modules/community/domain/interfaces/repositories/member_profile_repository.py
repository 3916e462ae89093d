"""Member profile repository interface."""

from collections.abc import Mapping
from typing import Any, Protocol

from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.domain.enums import MemberStatus, Rank


class IMemberProfileRepository(Protocol):
    """Persistence port for MemberProfile aggregates.

    ``save`` raises ``OptimisticLockError`` on a stale version,
    ``UniqueConstraintError`` when ``oidc_subject_id`` or ``linked_vc_did`` is
    taken and ``RepositoryError`` on storage failure.
    """

    async def save(self, member: MemberProfile) -> MemberProfile:
        """Insert or conditionally update the member and publish its events."""
        ...

    async def compare_and_swap(
        self, member_id: str, expected_version: int, new_state: Mapping[str, Any]
    ) -> Any:
        """Conditional write returning SUCCESS, CONFLICT or NOT_FOUND."""
        ...

    async def find_by_id(self, member_id: str) -> MemberProfile | None:
        ...

    async def find_by_oidc_subject_id(self, oidc_subject_id: str) -> MemberProfile | None:
        """Find member by external identity.

        Args:
            oidc_subject_id: Subject claim from the identity provider

        Returns:
            MemberProfile if found, None otherwise
        """
        ...

    async def find_by_linked_vc_did(self, did: str) -> MemberProfile | None:
        ...

    async def find_by_status(self, status: MemberStatus) -> list[MemberProfile]:
        ...

    async def find_by_rank(self, rank: Rank) -> list[MemberProfile]:
        """Verified members holding ``rank``."""
        ...

    async def delete(self, member_id: str) -> bool:
        """Remove the member. Deleting a missing member is not an error."""
        ...

    async def exists_by_oidc_subject_id(self, oidc_subject_id: str) -> bool:
        ...

    async def exists_by_linked_vc_did(self, did: str) -> bool:
        ...
