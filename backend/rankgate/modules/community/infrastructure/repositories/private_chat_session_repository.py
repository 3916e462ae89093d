"""SQLAlchemy implementation of the private chat session repository."""

from typing import Any

from sqlalchemy import and_, or_, select

from rankgate.core.infrastructure.repository import SQLAggregateRepository
from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)
from rankgate.modules.community.domain.enums import SessionStatus, SessionType
from rankgate.modules.community.infrastructure.models.private_chat_session import (
    PrivateChatSessionModel,
)

Model = PrivateChatSessionModel


class SQLPrivateChatSessionRepository(
    SQLAggregateRepository[PrivateChatSession, PrivateChatSessionModel]
):
    model_class = PrivateChatSessionModel
    aggregate_name = "PrivateChatSession"
    unique_fields = {"tlk_channel_id": "tlk_channel_id"}

    def _to_domain(self, model: PrivateChatSessionModel) -> PrivateChatSession:
        return PrivateChatSession.reconstitute(
            entity_id=model.id,
            member_a_id=model.member_a_id,
            member_b_id=model.member_b_id,
            tlk_channel_id=model.tlk_channel_id,
            session_type=model.session_type,
            expires_at=model.expires_at,
            status=model.status,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_row(self, aggregate: PrivateChatSession) -> dict[str, Any]:
        return aggregate.to_persistence()

    async def find_by_tlk_channel_id(self, tlk_channel_id: str) -> PrivateChatSession | None:
        return await self._find_one(
            select(Model).where(Model.tlk_channel_id == tlk_channel_id)
        )

    async def find_active_sessions_for_member(self, member_id: str) -> list[PrivateChatSession]:
        return await self._find_many(
            select(Model)
            .where(
                Model.status == SessionStatus.ACTIVE,
                or_(Model.member_a_id == member_id, Model.member_b_id == member_id),
            )
            .order_by(Model.created_at.desc())
        )

    async def find_active_session_between_members(
        self, first_member_id: str, second_member_id: str
    ) -> PrivateChatSession | None:
        return await self._find_one(
            select(Model)
            .where(
                Model.status == SessionStatus.ACTIVE,
                or_(
                    and_(
                        Model.member_a_id == first_member_id,
                        Model.member_b_id == second_member_id,
                    ),
                    and_(
                        Model.member_a_id == second_member_id,
                        Model.member_b_id == first_member_id,
                    ),
                ),
            )
            .order_by(Model.created_at.desc())
        )

    async def find_expired_sessions(self, cutoff: int) -> list[PrivateChatSession]:
        return await self._find_many(
            select(Model)
            .where(Model.status == SessionStatus.ACTIVE, Model.expires_at <= cutoff)
            .order_by(Model.expires_at)
        )

    async def find_by_status(self, status: SessionStatus) -> list[PrivateChatSession]:
        return await self._find_many(
            select(Model).where(Model.status == status).order_by(Model.created_at)
        )

    async def find_by_type(self, session_type: SessionType) -> list[PrivateChatSession]:
        return await self._find_many(
            select(Model).where(Model.session_type == session_type).order_by(Model.created_at)
        )

    async def count_by_status(self, status: SessionStatus) -> int:
        return await self._count_where(Model.status == status)

    async def count_active_expiring_between(self, start: int, end: int) -> int:
        return await self._count_where(
            Model.status == SessionStatus.ACTIVE,
            Model.expires_at > start,
            Model.expires_at <= end,
        )

    async def exists_by_tlk_channel_id(self, tlk_channel_id: str) -> bool:
        return await self._exists_where(Model.tlk_channel_id == tlk_channel_id)
