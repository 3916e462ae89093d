"""Integration tests for the community container wiring."""

import base64
from unittest.mock import AsyncMock

import pytest

from rankgate.bootstrap import create_community_container
from rankgate.core.config import Settings
from rankgate.core.database import create_schema
from rankgate.modules.community.application.errors import ForumEntryRateLimitedError
from rankgate.modules.community.application.services import MatchState
from rankgate.modules.community.domain.enums import Rank, SessionType, VerificationStatus
from rankgate.modules.community.domain.interfaces.services import VerificationResult

HOUR_MS = 3_600_000


@pytest.fixture
async def container(tmp_path, encryption_key):
    settings = Settings(
        env_file=None,
        environ={
            "ENVIRONMENT": "test",
            "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'wired.db'}",
            "FIELD_ENCRYPTION_KEY": base64.b64encode(encryption_key).decode(),
            "TLK_BASE_URL": "https://chat.example/",
            "FORUM_ENTRY_RATE_LIMIT": "1",
            "SESSION_DAILY_MATCH_HOURS": "2",
            "VC_VERIFICATION_TTL_MINUTES": "1",
            "MATCH_QUEUE_TTL_MINUTES": "3",
        },
    )
    verifier = AsyncMock()
    verifier.initiate_verification.return_value = VerificationResult(
        transaction_id="tx-wired", status=VerificationStatus.PENDING
    )
    container = create_community_container(settings=settings, verifier=verifier)
    await create_schema(container.engine())

    yield container

    await container.engine().dispose()


class TestCommunityContainer:
    """Services built from settings."""

    @pytest.mark.asyncio
    async def test_services_share_configuration(self, container):
        members = container.member_service()
        forums = container.forum_service()
        founder = await members.register_or_get("sub-founder", "Founder")
        guest = await members.register_or_get("sub-guest", "Guest")
        async with container.uow_factory()() as uow:
            for member, did in ((founder, "did:example:f"), (guest, "did:example:g")):
                loaded = await uow.members.find_by_id(member.id)
                loaded.verify_with_rank_card(did, Rank.QUASI_WEALTHY_VIP)
                await uow.members.save(loaded)

        forum = await forums.create_forum(founder.id, Rank.QUASI_WEALTHY_VIP, capacity=5)
        entry = await forums.enter_forum(guest.id, forum.id)

        assert entry.channel.url == f"https://chat.example/{forum.tlk_channel_id}"
        with pytest.raises(ForumEntryRateLimitedError):
            await container.forum_service().enter_forum(guest.id, forum.id)

    @pytest.mark.asyncio
    async def test_session_policy_from_settings(self, container):
        members = container.member_service()
        alice = await members.register_or_get("sub-a", "Alice")
        bob = await members.register_or_get("sub-b", "Bob")

        session = await container.chat_service().open_session(
            alice.id, bob.id, SessionType.DAILY_MATCH
        )

        assert session.expires_at - session.created_at == 2 * HOUR_MS

    @pytest.mark.asyncio
    async def test_verification_ttl_from_settings(self, container):
        member = await container.member_service().register_or_get("sub-v", "Vera")

        vc_session = await container.verification_service().start_verification(member.id)

        assert vc_session.transaction_id == "tx-wired"
        assert vc_session.expires_at - vc_session.created_at == 60_000

    @pytest.mark.asyncio
    async def test_matching_uses_queue_ttl_and_session_policy(self, container):
        members = container.member_service()
        alice = await members.register_or_get("sub-ma", "Alice")
        bob = await members.register_or_get("sub-mb", "Bob")
        async with container.uow_factory()() as uow:
            for member, did in ((alice, "did:example:ma"), (bob, "did:example:mb")):
                loaded = await uow.members.find_by_id(member.id)
                loaded.verify_with_rank_card(did, Rank.LIFE_WINNER_S)
                await uow.members.save(loaded)
        matching = container.matching_service()

        waiting = await matching.request_match(alice.id)
        async with container.uow_factory()() as uow:
            slot = await uow.matching_queue.get(alice.id)
        matched = await matching.request_match(bob.id)

        assert waiting.state == MatchState.WAITING
        assert slot.expires_at - slot.joined_at == 3 * 60_000
        assert matched.state == MatchState.MATCHED
        assert matched.partner_id == alice.id
        assert matched.session.expires_at - matched.session.created_at == 2 * HOUR_MS
