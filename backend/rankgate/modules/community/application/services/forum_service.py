"""Forum application service.

Entering and leaving a forum change its member count under optimistic
locking. A conflicting concurrent write makes the whole attempt reload the
forum and re-check admission before trying again.
"""

import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from rankgate.core.domain.base import new_id
from rankgate.core.infrastructure.repository import OptimisticLockError
from rankgate.core.logging import get_logger
from rankgate.core.security.rate_limiter import RateLimiter
from rankgate.modules.community.application.errors import (
    ForumAccessDeniedError,
    ForumEntryRateLimitedError,
    ForumFullError,
    ForumNotFoundError,
    MemberNotFoundError,
    MemberNotVerifiedError,
)
from rankgate.modules.community.domain.aggregates.forum import Forum
from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.domain.enums import Rank
from rankgate.modules.community.domain.errors import ArchivedForumError
from rankgate.modules.community.domain.interfaces.services import (
    ChatChannel,
    IChatChannelProvider,
)
from rankgate.modules.community.infrastructure.unit_of_work import (
    CommunityUnitOfWork,
    UnitOfWorkFactory,
)

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ForumEntry:
    """A successful forum entry: the updated forum and the channel to open."""

    forum: Forum
    channel: ChatChannel


class ForumService:
    """Application service for forums."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        channel_provider: IChatChannelProvider,
        rate_limiter: RateLimiter | None = None,
        max_lock_retries: int = 3,
    ):
        """Initialize forum service.

        Args:
            uow_factory: Opens a unit of work per attempt
            channel_provider: Derives chat channels for forums
            rate_limiter: Optional per-member limiter for forum entry
            max_lock_retries: Attempts made before a lock conflict propagates
        """
        self._uow_factory = uow_factory
        self._channels = channel_provider
        self._rate_limiter = rate_limiter
        self._max_lock_retries = max(1, max_lock_retries)

    async def create_forum(
        self,
        creator_id: str,
        required_rank: Rank | str,
        capacity: int,
        description: str | None = None,
    ) -> Forum:
        """Create an ACTIVE forum bound to a new chat channel.

        Raises:
            MemberNotFoundError: If the creator does not exist
            InvalidArgumentError: If rank or capacity is invalid
            UniqueConstraintError: If the derived channel is already taken
        """
        forum_id = new_id()
        async with self._uow_factory() as uow:
            creator = await self._load_member(uow, creator_id)
            channel = self._channels.forum_channel(forum_id, creator.nickname)
            forum = Forum.create(
                required_rank=required_rank,
                tlk_channel_id=channel.channel_id,
                capacity=capacity,
                creator_id=creator.id,
                description=description,
                entity_id=forum_id,
            )
            await uow.forums.save(forum)

        logger.info(
            "Forum created",
            forum_id=forum.id,
            required_rank=forum.required_rank.value,
            capacity=forum.capacity,
        )
        return forum

    async def list_accessible_forums(self, member_id: str) -> list[Forum]:
        """Forums the member can currently see; empty until the member is verified."""
        async with self._uow_factory() as uow:
            member = await self._load_member(uow, member_id)
            if not member.is_verified or member.derived_rank is None:
                return []
            return await uow.forums.find_accessible_forums(member.derived_rank)

    async def enter_forum(self, member_id: str, forum_id: str) -> ForumEntry:
        """Admit a member to a forum and count them in.

        The member must pass the adjacency check on their own profile and the
        forum's "at least the required rank" check.

        Raises:
            ForumEntryRateLimitedError: Too many entry attempts by this member
            MemberNotFoundError / ForumNotFoundError: Unknown ids
            MemberNotVerifiedError: Member has no Rank Card yet
            ForumAccessDeniedError: Rank does not admit the member
            ArchivedForumError: Forum is archived
            ForumFullError: Forum is at capacity
            OptimisticLockError: Conflicts persisted after all retries
        """
        await self._check_rate_limit(member_id)
        entry = await self._with_lock_retries(
            "enter_forum", forum_id, lambda: self._try_enter(member_id, forum_id)
        )
        logger.info(
            "Member entered forum",
            member_id=member_id,
            forum_id=forum_id,
            member_count=entry.forum.member_count,
        )
        return entry

    async def leave_forum(self, member_id: str, forum_id: str) -> Forum:
        """Count a member out of a forum.

        Raises:
            NegativeCountError: If the forum has no members
            ArchivedForumError: If the forum is archived
        """
        forum = await self._with_lock_retries(
            "leave_forum", forum_id, lambda: self._try_leave(member_id, forum_id)
        )
        logger.info(
            "Member left forum",
            member_id=member_id,
            forum_id=forum_id,
            member_count=forum.member_count,
        )
        return forum

    async def archive_forum(self, forum_id: str) -> Forum:
        async with self._uow_factory() as uow:
            forum = await self._load_forum(uow, forum_id)
            forum.archive()
            await uow.forums.save(forum)

        logger.info("Forum archived", forum_id=forum_id)
        return forum

    # ------------------------------------------------------------------ attempts

    async def _try_enter(self, member_id: str, forum_id: str) -> ForumEntry:
        async with self._uow_factory() as uow:
            member = await self._load_member(uow, member_id)
            forum = await self._load_forum(uow, forum_id)

            if not member.is_verified or member.derived_rank is None:
                raise MemberNotVerifiedError(member_id)
            if not member.can_access_forum(forum.required_rank):
                logger.warning(
                    "Forum entry denied",
                    member_id=member_id,
                    forum_id=forum_id,
                    member_rank=member.derived_rank.value,
                    required_rank=forum.required_rank.value,
                )
                raise ForumAccessDeniedError(member_id, forum_id, "rank not adjacent")
            if not forum.can_member_access(member.derived_rank):
                self._raise_admission_failure(member, forum)

            forum.increment_member_count()
            await uow.forums.save(forum)

        return ForumEntry(forum, self._channels.forum_channel(forum.id, member.nickname))

    async def _try_leave(self, member_id: str, forum_id: str) -> Forum:
        async with self._uow_factory() as uow:
            await self._load_member(uow, member_id)
            forum = await self._load_forum(uow, forum_id)
            forum.decrement_member_count()
            await uow.forums.save(forum)
        return forum

    @staticmethod
    def _raise_admission_failure(member: MemberProfile, forum: Forum) -> None:
        if not forum.is_active():
            raise ArchivedForumError(forum.id)
        if forum.is_full():
            raise ForumFullError(forum.id, forum.capacity)
        raise ForumAccessDeniedError(member.id, forum.id, "rank below required rank")

    async def _with_lock_retries(
        self, operation: str, forum_id: str, attempt: Callable[[], Awaitable[T]]
    ) -> T:
        for attempt_number in range(1, self._max_lock_retries + 1):
            try:
                return await attempt()
            except OptimisticLockError:
                if attempt_number == self._max_lock_retries:
                    logger.warning(
                        "Giving up after repeated lock conflicts",
                        operation=operation,
                        forum_id=forum_id,
                        attempts=attempt_number,
                    )
                    raise
                logger.info(
                    "Lock conflict, retrying",
                    operation=operation,
                    forum_id=forum_id,
                    attempt=attempt_number,
                )
        raise AssertionError("unreachable")

    async def _check_rate_limit(self, member_id: str) -> None:
        if self._rate_limiter is None:
            return
        decision = await self._rate_limiter.hit(f"forum-entry:{member_id}")
        if not decision.allowed:
            logger.warning("Forum entry rate limited", member_id=member_id)
            raise ForumEntryRateLimitedError(
                self._rate_limiter.limit,
                self._rate_limiter.window_seconds,
                retry_after=math.ceil(decision.retry_after) or None,
            )

    # ------------------------------------------------------------------ loading

    @staticmethod
    async def _load_member(uow: CommunityUnitOfWork, member_id: str) -> MemberProfile:
        member = await uow.members.find_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    @staticmethod
    async def _load_forum(uow: CommunityUnitOfWork, forum_id: str) -> Forum:
        forum = await uow.forums.find_by_id(forum_id)
        if forum is None:
            raise ForumNotFoundError(forum_id)
        return forum
