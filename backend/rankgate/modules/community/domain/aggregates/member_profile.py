"""MemberProfile aggregate.

A member is created on first OIDC login with status GENERAL and can be
verified exactly once with a Rank Card, which links a DID and fixes the
member's derived rank. ``gender`` and ``interests`` are held in plaintext
here; encryption happens in the repository.
"""

from typing import Any

from rankgate.core.domain.base import AggregateRoot
from rankgate.modules.community.domain.enums import MemberStatus, Rank
from rankgate.modules.community.domain.errors import (
    AlreadyVerifiedError,
    InvalidArgumentError,
)
from rankgate.modules.community.domain.events import MemberProfileUpdated, MemberVerified
from rankgate.modules.community.domain.validation import require_text
from rankgate.modules.community.domain.value_objects.rank_hierarchy import RankHierarchy


class MemberProfile(AggregateRoot):
    """
    Member identity, verification state and personal fields.

    Invariants:
    - ``oidc_subject_id`` and ``nickname`` are non-empty
    - status moves GENERAL -> VERIFIED once and never back
    - ``linked_vc_did`` and ``derived_rank`` are both set or both absent
    """

    aggregate_type = "MemberProfile"

    def __init__(
        self,
        oidc_subject_id: str,
        nickname: str,
        status: MemberStatus = MemberStatus.GENERAL,
        gender: str | None = None,
        interests: str | None = None,
        linked_vc_did: str | None = None,
        derived_rank: Rank | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.oidc_subject_id = oidc_subject_id
        self.nickname = nickname
        self.status = status
        self.gender = gender
        self.interests = interests
        self.linked_vc_did = linked_vc_did
        self.derived_rank = derived_rank

    @classmethod
    def create(
        cls,
        oidc_subject_id: str,
        nickname: str,
        gender: str | None = None,
        interests: str | None = None,
        entity_id: str | None = None,
    ) -> "MemberProfile":
        """
        Create a GENERAL member at version 1.

        Raises:
            InvalidArgumentError: If ``oidc_subject_id`` or ``nickname`` is blank
        """
        require_text(oidc_subject_id, "oidc_subject_id")
        require_text(nickname, "nickname")
        return cls(
            oidc_subject_id=oidc_subject_id,
            nickname=nickname,
            gender=gender,
            interests=interests,
            entity_id=entity_id,
        )

    @classmethod
    def reconstitute(
        cls,
        entity_id: str,
        oidc_subject_id: str,
        nickname: str,
        status: MemberStatus,
        gender: str | None,
        interests: str | None,
        linked_vc_did: str | None,
        derived_rank: Rank | None,
        version: int,
        created_at: int,
        updated_at: int,
    ) -> "MemberProfile":
        """Rebuild a stored member without re-running creation rules."""
        return cls(
            oidc_subject_id=oidc_subject_id,
            nickname=nickname,
            status=status,
            gender=gender,
            interests=interests,
            linked_vc_did=linked_vc_did,
            derived_rank=derived_rank,
            entity_id=entity_id,
            version=version,
            created_at=created_at,
            updated_at=updated_at,
            persisted_version=version,
        )

    # ------------------------------------------------------------------ queries

    @property
    def is_verified(self) -> bool:
        return self.status == MemberStatus.VERIFIED

    def can_access_forum(self, forum_rank: Rank | str) -> bool:
        """
        Whether the member may see a forum requiring ``forum_rank``.

        Uses the adjacency table: own rank, one above or one below.

        Raises:
            InvalidArgumentError: If ``forum_rank`` is not a valid rank
        """
        forum_rank = RankHierarchy.parse(forum_rank, field="forum_rank")
        if not self.is_verified or self.derived_rank is None:
            return False
        return RankHierarchy.is_adjacent(self.derived_rank, forum_rank)

    # ------------------------------------------------------------------ commands

    def verify_with_rank_card(self, did: str, rank: Rank | str) -> None:
        """
        Link a verified Rank Card to this member.

        Args:
            did: Decentralised identifier from the credential
            rank: Rank asserted by the credential

        Raises:
            AlreadyVerifiedError: If the member is not GENERAL
            InvalidArgumentError: If ``did`` is blank or ``rank`` is not a valid rank
        """
        if self.status != MemberStatus.GENERAL:
            raise AlreadyVerifiedError(self.id)
        require_text(did, "did")
        if rank is None or (isinstance(rank, str) and not rank.strip()):
            raise InvalidArgumentError("rank", "cannot be empty")
        parsed_rank = RankHierarchy.parse(rank)

        self.status = MemberStatus.VERIFIED
        self.linked_vc_did = did
        self.derived_rank = parsed_rank
        self.increment_version()

        self.add_event(
            MemberVerified(
                member_id=self.id,
                did=did,
                rank=parsed_rank.value,
                verified_at=self.updated_at,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type,
                aggregate_version=self.version,
            )
        )

    def update_profile(self, gender: str, interests: str) -> None:
        """
        Replace the member's personal fields.

        Raises:
            InvalidArgumentError: If either value is blank
        """
        require_text(gender, "gender")
        require_text(interests, "interests")

        self.gender = gender
        self.interests = interests
        self.increment_version()

        self.add_event(
            MemberProfileUpdated(
                member_id=self.id,
                oidc_subject_id=self.oidc_subject_id,
                updated_at=self.updated_at,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type,
                aggregate_version=self.version,
            )
        )

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "oidc_subject_id": self.oidc_subject_id,
            "nickname": self.nickname,
            "status": self.status,
            "gender": self.gender,
            "interests": self.interests,
            "linked_vc_did": self.linked_vc_did,
            "derived_rank": self.derived_rank,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
