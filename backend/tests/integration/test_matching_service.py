"""Integration tests for daily matching."""

from unittest.mock import AsyncMock

import pytest

from rankgate.core.infrastructure.repository import RepositoryError
from rankgate.modules.community.application.errors import (
    AlreadyMatchedError,
    MemberNotFoundError,
    MemberNotVerifiedError,
)
from rankgate.modules.community.application.services import (
    MatchingService,
    MatchState,
    PrivateChatService,
)
from rankgate.modules.community.domain.enums import Rank, SessionStatus, SessionType
from tests.factories import make_member, make_verified_member

QUEUE_TTL_MS = 10 * 60_000


@pytest.fixture
def chat_service(uow_factory, channel_provider, clock):
    return PrivateChatService(uow_factory, channel_provider, clock=clock)


@pytest.fixture
def matching(uow_factory, chat_service, clock):
    return MatchingService(uow_factory, chat_service, QUEUE_TTL_MS, clock=clock)


@pytest.fixture
def add_member(uow_factory):
    async def add(rank: Rank | None = Rank.QUASI_WEALTHY_VIP, nickname: str = "Alice"):
        member = (
            make_verified_member(rank=rank, nickname=nickname)
            if rank
            else make_member(nickname=nickname)
        )
        async with uow_factory() as uow:
            await uow.members.save(member)
        return member

    return add


async def queued(uow_factory, member_id):
    async with uow_factory() as uow:
        return await uow.matching_queue.get(member_id)


class TestRequestMatch:
    """Pairing and queueing."""

    @pytest.mark.asyncio
    async def test_first_request_waits_in_queue(self, matching, add_member, clock, uow_factory):
        alice = await add_member()

        status = await matching.request_match(alice.id)

        assert status.state == MatchState.WAITING
        assert status.queued_until == clock() + QUEUE_TTL_MS
        slot = await queued(uow_factory, alice.id)
        assert slot.rank == Rank.QUASI_WEALTHY_VIP
        assert slot.joined_at == clock()

    @pytest.mark.asyncio
    async def test_compatible_request_pairs_with_longest_waiting(
        self, matching, add_member, clock, uow_factory
    ):
        first = await add_member(Rank.LIFE_WINNER_S, "First")
        await matching.request_match(first.id)
        clock.advance(1000)
        second = await add_member(Rank.QUASI_WEALTHY_VIP, "Second")
        await matching.request_match(second.id)
        requester = await add_member(Rank.LIFE_WINNER_S, "Requester")

        status = await matching.request_match(requester.id)

        assert status.state == MatchState.MATCHED
        assert status.partner_id == first.id
        assert status.session.session_type == SessionType.DAILY_MATCH
        assert status.session.involves_members(requester.id, first.id)
        assert await queued(uow_factory, first.id) is None
        assert await queued(uow_factory, requester.id) is None
        assert await queued(uow_factory, second.id) is not None

    @pytest.mark.asyncio
    async def test_non_adjacent_ranks_are_not_paired(self, matching, add_member, uow_factory):
        newbie = await add_member(Rank.NEWBIE_VILLAGE, "Newbie")
        await matching.request_match(newbie.id)
        graduate = await add_member(Rank.EARTH_OL_GRADUATE, "Graduate")

        status = await matching.request_match(graduate.id)

        assert status.state == MatchState.WAITING
        assert await queued(uow_factory, newbie.id) is not None

    @pytest.mark.asyncio
    async def test_lapsed_queue_slot_is_not_matched(self, matching, add_member, clock):
        alice = await add_member(nickname="Alice")
        await matching.request_match(alice.id)
        clock.advance(QUEUE_TTL_MS)
        bob = await add_member(nickname="Bob")

        status = await matching.request_match(bob.id)

        assert status.state == MatchState.WAITING
        assert (await matching.get_match_status(alice.id)).state == MatchState.IDLE

    @pytest.mark.asyncio
    async def test_request_again_renews_slot_without_self_match(
        self, matching, add_member, clock
    ):
        alice = await add_member()
        await matching.request_match(alice.id)
        clock.advance(5 * 60_000)

        status = await matching.request_match(alice.id)

        assert status.state == MatchState.WAITING
        assert status.queued_until == clock() + QUEUE_TTL_MS

    @pytest.mark.asyncio
    async def test_second_daily_match_is_rejected(self, matching, add_member, chat_service):
        alice = await add_member(nickname="Alice")
        bob = await add_member(nickname="Bob")
        await matching.request_match(alice.id)
        matched = await matching.request_match(bob.id)

        with pytest.raises(AlreadyMatchedError) as exc_info:
            await matching.request_match(alice.id)

        assert exc_info.value.details["session_id"] == matched.session.id
        await chat_service.terminate_session(alice.id, matched.session.id)
        assert (await matching.request_match(alice.id)).state == MatchState.WAITING

    @pytest.mark.asyncio
    async def test_overdue_daily_match_does_not_block(self, matching, add_member, clock):
        alice = await add_member(nickname="Alice")
        bob = await add_member(nickname="Bob")
        await matching.request_match(alice.id)
        await matching.request_match(bob.id)
        clock.advance(24 * 3_600_000)

        status = await matching.request_match(alice.id)

        assert status.state == MatchState.WAITING

    @pytest.mark.asyncio
    async def test_members_already_chatting_are_skipped(
        self, matching, add_member, chat_service, uow_factory
    ):
        alice = await add_member(nickname="Alice")
        bob = await add_member(nickname="Bob")
        await chat_service.open_session(alice.id, bob.id, SessionType.GROUP_INITIATED)
        await matching.request_match(alice.id)

        status = await matching.request_match(bob.id)

        assert status.state == MatchState.WAITING
        assert await queued(uow_factory, alice.id) is not None

    @pytest.mark.asyncio
    async def test_unverified_and_unknown_members_rejected(self, matching, add_member):
        guest = await add_member(rank=None)

        with pytest.raises(MemberNotVerifiedError):
            await matching.request_match(guest.id)
        with pytest.raises(MemberNotFoundError):
            await matching.request_match("missing")

    @pytest.mark.asyncio
    async def test_partner_is_requeued_when_session_cannot_open(
        self, matching, add_member, chat_service, uow_factory
    ):
        alice = await add_member(nickname="Alice")
        bob = await add_member(nickname="Bob")
        await matching.request_match(alice.id)
        slot = await queued(uow_factory, alice.id)
        chat_service.open_session = AsyncMock(side_effect=RepositoryError("down"))

        with pytest.raises(RepositoryError):
            await matching.request_match(bob.id)

        assert await queued(uow_factory, alice.id) == slot
        assert await queued(uow_factory, bob.id) is None


class TestMatchStatusAndCancel:
    """Status lookups and leaving the queue."""

    @pytest.mark.asyncio
    async def test_status_follows_the_match(self, matching, add_member):
        alice = await add_member(nickname="Alice")
        bob = await add_member(nickname="Bob")

        assert (await matching.get_match_status(alice.id)).state == MatchState.IDLE
        await matching.request_match(alice.id)
        assert (await matching.get_match_status(alice.id)).state == MatchState.WAITING
        matched = await matching.request_match(bob.id)

        status = await matching.get_match_status(alice.id)

        assert status.state == MatchState.MATCHED
        assert status.partner_id == bob.id
        assert status.session.id == matched.session.id
        assert status.session.status == SessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_cancel_leaves_queue(self, matching, add_member):
        alice = await add_member()
        await matching.request_match(alice.id)

        assert await matching.cancel_match(alice.id) is True
        assert await matching.cancel_match(alice.id) is False
        assert (await matching.get_match_status(alice.id)).state == MatchState.IDLE
