"""Daily match application service.

A member asking for a match is paired with the longest-waiting member of an
adjacent rank, or queued until someone compatible asks. A member holds at
most one live daily match at a time.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from rankgate.core.domain.base import utc_now_ms
from rankgate.core.logging import get_logger
from rankgate.modules.community.application.errors import (
    AlreadyMatchedError,
    MemberNotFoundError,
    MemberNotVerifiedError,
)
from rankgate.modules.community.application.services.chat_service import PrivateChatService
from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)
from rankgate.modules.community.domain.entities.matching_queue_entry import (
    MatchingQueueEntry,
)
from rankgate.modules.community.domain.enums import SessionType
from rankgate.modules.community.domain.value_objects.rank_hierarchy import RankHierarchy
from rankgate.modules.community.infrastructure.unit_of_work import (
    CommunityUnitOfWork,
    UnitOfWorkFactory,
)

logger = get_logger(__name__)


class MatchState(str, Enum):
    MATCHED = "matched"
    WAITING = "waiting"
    IDLE = "idle"


@dataclass(frozen=True)
class MatchStatus:
    """Where a member stands in daily matching."""

    state: MatchState
    session: PrivateChatSession | None = None
    partner_id: str | None = None
    queued_until: int | None = None


class MatchingService:
    """Queues members for daily matches and pairs compatible ones."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        chat_service: PrivateChatService,
        queue_ttl_ms: int,
        clock: Callable[[], int] = utc_now_ms,
        candidate_batch: int = 5,
    ):
        """
        Args:
            uow_factory: Opens a unit of work per operation
            chat_service: Opens the DAILY_MATCH session once a pair is found
            queue_ttl_ms: How long a queued request stays matchable
            clock: Returns the current time in epoch milliseconds
            candidate_batch: Waiting members tried per request
        """
        self._uow_factory = uow_factory
        self._chat = chat_service
        self._queue_ttl_ms = queue_ttl_ms
        self._clock = clock
        self._candidate_batch = candidate_batch

    async def request_match(self, member_id: str) -> MatchStatus:
        """Pair the member with a waiting compatible member, or queue them.

        Compatible means a rank in the member's adjacency set. Members the
        requester already chats with are skipped. Asking again while queued
        renews the queue slot.

        Returns:
            MatchStatus: MATCHED with the new session, or WAITING with the
            time the queue slot lapses

        Raises:
            MemberNotFoundError: If the member does not exist
            MemberNotVerifiedError: If the member has no Rank Card yet
            AlreadyMatchedError: If the member already has a live daily match
        """
        now = self._clock()
        partner: MatchingQueueEntry | None = None
        async with self._uow_factory() as uow:
            member = await uow.members.find_by_id(member_id)
            if member is None:
                raise MemberNotFoundError(member_id)
            if not member.is_verified or member.derived_rank is None:
                raise MemberNotVerifiedError(member_id)

            live = await self._live_sessions(uow, member_id, now)
            daily = self._daily_match(live)
            if daily is not None:
                raise AlreadyMatchedError(member_id, daily.id)

            excluded = {member_id}
            excluded.update(session.get_other_member_id(member_id) for session in live)
            candidates = await uow.matching_queue.find_waiting(
                RankHierarchy.adjacent_ranks(member.derived_rank),
                now,
                exclude_member_ids=excluded,
                limit=self._candidate_batch,
            )
            for candidate in candidates:
                # Lost races leave the row already deleted
                if await uow.matching_queue.remove(candidate.member_id):
                    partner = candidate
                    break

            if partner is None:
                entry = MatchingQueueEntry.join(
                    member_id, member.derived_rank, self._queue_ttl_ms, now
                )
                await uow.matching_queue.upsert(entry)
            else:
                await uow.matching_queue.remove(member_id)

        if partner is None:
            logger.info(
                "Member queued for daily match",
                member_id=member_id,
                rank=entry.rank.value,
                queued_until=entry.expires_at,
            )
            return MatchStatus(MatchState.WAITING, queued_until=entry.expires_at)

        try:
            session = await self._chat.open_session(
                member_id, partner.member_id, SessionType.DAILY_MATCH
            )
        except Exception:
            await self._requeue(partner)
            raise

        logger.info(
            "Daily match found",
            member_id=member_id,
            partner_id=partner.member_id,
            session_id=session.id,
        )
        return MatchStatus(MatchState.MATCHED, session=session, partner_id=partner.member_id)

    async def get_match_status(self, member_id: str) -> MatchStatus:
        """Live daily match first, then an unexpired queue slot, else IDLE."""
        now = self._clock()
        async with self._uow_factory() as uow:
            daily = self._daily_match(await self._live_sessions(uow, member_id, now))
            if daily is not None:
                return MatchStatus(
                    MatchState.MATCHED,
                    session=daily,
                    partner_id=daily.get_other_member_id(member_id),
                )
            entry = await uow.matching_queue.get(member_id)
        if entry is not None and not entry.is_expired(now):
            return MatchStatus(MatchState.WAITING, queued_until=entry.expires_at)
        return MatchStatus(MatchState.IDLE)

    async def cancel_match(self, member_id: str) -> bool:
        """Leave the queue. Returns False if the member was not queued."""
        async with self._uow_factory() as uow:
            removed = await uow.matching_queue.remove(member_id)
        if removed:
            logger.info("Daily match request cancelled", member_id=member_id)
        return removed

    async def _requeue(self, entry: MatchingQueueEntry) -> None:
        async with self._uow_factory() as uow:
            await uow.matching_queue.upsert(entry)
        logger.warning("Partner returned to match queue", member_id=entry.member_id)

    @staticmethod
    async def _live_sessions(
        uow: CommunityUnitOfWork, member_id: str, now: int
    ) -> list[PrivateChatSession]:
        sessions = await uow.chat_sessions.find_active_sessions_for_member(member_id)
        return [session for session in sessions if session.is_active(now)]

    @staticmethod
    def _daily_match(sessions: list[PrivateChatSession]) -> PrivateChatSession | None:
        return next(
            (s for s in sessions if s.session_type == SessionType.DAILY_MATCH), None
        )
