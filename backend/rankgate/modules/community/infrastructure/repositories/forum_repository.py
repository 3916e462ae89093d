"""SQLAlchemy implementation of the forum repository."""

from typing import Any

from sqlalchemy import select

from rankgate.core.infrastructure.repository import SQLAggregateRepository
from rankgate.modules.community.domain.aggregates.forum import Forum
from rankgate.modules.community.domain.enums import ForumStatus, Rank
from rankgate.modules.community.domain.value_objects.rank_hierarchy import RankHierarchy
from rankgate.modules.community.infrastructure.models.forum import ForumModel


class SQLForumRepository(SQLAggregateRepository[Forum, ForumModel]):
    model_class = ForumModel
    aggregate_name = "Forum"
    unique_fields = {"tlk_channel_id": "tlk_channel_id"}

    def _to_domain(self, model: ForumModel) -> Forum:
        return Forum.reconstitute(
            entity_id=model.id,
            required_rank=model.required_rank,
            tlk_channel_id=model.tlk_channel_id,
            capacity=model.capacity,
            creator_id=model.creator_id,
            description=model.description,
            status=model.status,
            member_count=model.member_count,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_row(self, aggregate: Forum) -> dict[str, Any]:
        return aggregate.to_persistence()

    async def find_by_tlk_channel_id(self, tlk_channel_id: str) -> Forum | None:
        return await self._find_one(
            select(ForumModel).where(ForumModel.tlk_channel_id == tlk_channel_id)
        )

    async def find_by_required_rank(self, rank: Rank) -> list[Forum]:
        return await self._find_many(
            select(ForumModel)
            .where(
                ForumModel.required_rank == rank,
                ForumModel.status == ForumStatus.ACTIVE,
            )
            .order_by(ForumModel.created_at)
        )

    async def find_active_forums(self) -> list[Forum]:
        forums = await self._find_many(
            select(ForumModel)
            .where(ForumModel.status == ForumStatus.ACTIVE)
            .order_by(ForumModel.created_at)
        )
        return self._sorted_by_rank(forums)

    async def find_accessible_forums(self, member_rank: Rank) -> list[Forum]:
        """
        Forums a member of ``member_rank`` can see and still join.

        Args:
            member_rank: The member's derived rank

        Returns:
            Active forums below capacity whose required rank is adjacent to
            ``member_rank``, lowest rank first
        """
        ranks = list(RankHierarchy.adjacent_ranks(member_rank))
        forums = await self._find_many(
            select(ForumModel)
            .where(
                ForumModel.required_rank.in_(ranks),
                ForumModel.status == ForumStatus.ACTIVE,
                ForumModel.member_count < ForumModel.capacity,
            )
            .order_by(ForumModel.created_at)
        )
        return self._sorted_by_rank(forums)

    async def exists_by_tlk_channel_id(self, tlk_channel_id: str) -> bool:
        return await self._exists_where(ForumModel.tlk_channel_id == tlk_channel_id)

    @staticmethod
    def _sorted_by_rank(forums: list[Forum]) -> list[Forum]:
        # Stable sort keeps creation order within a rank
        return sorted(forums, key=lambda forum: RankHierarchy.level(forum.required_rank))
