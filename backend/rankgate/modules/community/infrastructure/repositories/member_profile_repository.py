"""SQLAlchemy implementation of the member profile repository."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rankgate.core.events.publisher import EventPublisher
from rankgate.core.infrastructure.repository import SQLAggregateRepository
from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.domain.enums import MemberStatus, Rank
from rankgate.modules.community.infrastructure.models.member_profile import (
    MemberProfileModel,
)
from rankgate.modules.community.infrastructure.security.field_encryption import (
    FieldEncryptionService,
)


class SQLMemberProfileRepository(SQLAggregateRepository[MemberProfile, MemberProfileModel]):
    """
    Member profile persistence.

    ``gender`` and ``interests`` are encrypted before they reach the database
    and decrypted when a member is loaded.
    """

    model_class = MemberProfileModel
    aggregate_name = "MemberProfile"
    unique_fields = {
        "oidc_subject_id": "oidc_subject_id",
        "linked_vc_did": "linked_vc_did",
    }

    def __init__(
        self,
        session: AsyncSession,
        encryption: FieldEncryptionService,
        event_publisher: EventPublisher | None = None,
    ):
        super().__init__(session, event_publisher)
        self._encryption = encryption

    def _to_domain(self, model: MemberProfileModel) -> MemberProfile:
        return MemberProfile.reconstitute(
            entity_id=model.id,
            oidc_subject_id=model.oidc_subject_id,
            nickname=model.nickname,
            status=model.status,
            gender=self._encryption.decrypt(model.gender),
            interests=self._encryption.decrypt(model.interests),
            linked_vc_did=model.linked_vc_did,
            derived_rank=model.derived_rank,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_row(self, aggregate: MemberProfile) -> dict[str, Any]:
        row = aggregate.to_persistence()
        row["gender"] = self._encryption.encrypt(row["gender"])
        row["interests"] = self._encryption.encrypt(row["interests"])
        return row

    async def find_by_oidc_subject_id(self, oidc_subject_id: str) -> MemberProfile | None:
        return await self._find_one(
            select(MemberProfileModel).where(
                MemberProfileModel.oidc_subject_id == oidc_subject_id
            )
        )

    async def find_by_linked_vc_did(self, did: str) -> MemberProfile | None:
        return await self._find_one(
            select(MemberProfileModel).where(MemberProfileModel.linked_vc_did == did)
        )

    async def find_by_status(self, status: MemberStatus) -> list[MemberProfile]:
        return await self._find_many(
            select(MemberProfileModel)
            .where(MemberProfileModel.status == status)
            .order_by(MemberProfileModel.created_at)
        )

    async def find_by_rank(self, rank: Rank) -> list[MemberProfile]:
        return await self._find_many(
            select(MemberProfileModel)
            .where(
                MemberProfileModel.status == MemberStatus.VERIFIED,
                MemberProfileModel.derived_rank == rank,
            )
            .order_by(MemberProfileModel.created_at)
        )

    async def exists_by_oidc_subject_id(self, oidc_subject_id: str) -> bool:
        return await self._exists_where(
            MemberProfileModel.oidc_subject_id == oidc_subject_id
        )

    async def exists_by_linked_vc_did(self, did: str) -> bool:
        return await self._exists_where(MemberProfileModel.linked_vc_did == did)
