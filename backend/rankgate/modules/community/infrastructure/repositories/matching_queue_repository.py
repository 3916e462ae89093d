"""SQLAlchemy store for the daily match queue."""

from collections.abc import Collection

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rankgate.core.infrastructure.repository import RepositoryError
from rankgate.core.logging import get_logger
from rankgate.modules.community.domain.entities.matching_queue_entry import (
    MatchingQueueEntry,
)
from rankgate.modules.community.domain.enums import Rank
from rankgate.modules.community.infrastructure.models.matching_queue import (
    MatchingQueueModel,
)

logger = get_logger(__name__)

Model = MatchingQueueModel


class SQLMatchingQueueRepository:
    """
    Queue slots keyed by member id. Claiming a partner is a delete: whoever
    removes the row owns the match, so two requests never pair with the
    same waiting member.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert(self, entry: MatchingQueueEntry) -> None:
        try:
            await self._session.merge(
                Model(
                    member_id=entry.member_id,
                    rank=entry.rank,
                    joined_at=entry.joined_at,
                    expires_at=entry.expires_at,
                )
            )
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to queue member for matching: {e}", cause=e) from e

    async def get(self, member_id: str) -> MatchingQueueEntry | None:
        result = await self._execute(
            select(Model)
            .where(Model.member_id == member_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def find_waiting(
        self,
        ranks: Collection[Rank],
        now: int,
        exclude_member_ids: Collection[str] = (),
        limit: int = 5,
    ) -> list[MatchingQueueEntry]:
        stmt = select(Model).where(Model.rank.in_(list(ranks)), Model.expires_at > now)
        if exclude_member_ids:
            stmt = stmt.where(Model.member_id.not_in(list(exclude_member_ids)))
        result = await self._execute(
            stmt.order_by(Model.joined_at, Model.member_id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(model) for model in result.scalars().all()]

    async def remove(self, member_id: str) -> bool:
        result = await self._execute(
            delete(Model)
            .where(Model.member_id == member_id)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    async def delete_expired(self, now: int) -> int:
        result = await self._execute(
            delete(Model)
            .where(Model.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            logger.debug("Deleted expired match queue entries", count=removed)
        return removed

    async def _execute(self, stmt):
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Match queue query failed: {e}", cause=e) from e

    @staticmethod
    def _to_domain(model: MatchingQueueModel) -> MatchingQueueEntry:
        return MatchingQueueEntry(
            member_id=model.member_id,
            rank=model.rank,
            joined_at=model.joined_at,
            expires_at=model.expires_at,
        )
