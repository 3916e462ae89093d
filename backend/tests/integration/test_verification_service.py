"""Integration tests for member registration and Rank Card verification."""

from unittest.mock import AsyncMock

import pytest

from rankgate.modules.community.application.errors import (
    DidAlreadyLinkedError,
    MemberNotFoundError,
    VerificationSessionNotFoundError,
)
from rankgate.modules.community.application.services import (
    MemberService,
    RankCardVerificationService,
)
from rankgate.modules.community.domain.entities import VCVerificationSession
from rankgate.modules.community.domain.enums import MemberStatus, Rank, VerificationStatus
from rankgate.modules.community.domain.errors import (
    AlreadyVerifiedError,
    InvalidArgumentError,
)
from rankgate.modules.community.domain.interfaces.services import (
    RankCardClaim,
    VerificationResult,
)

TTL_MS = 5 * 60_000


def pending_result(transaction_id: str = "tx-1") -> VerificationResult:
    return VerificationResult(
        transaction_id=transaction_id,
        status=VerificationStatus.PENDING,
        auth_uri=f"openid4vp://authorize?tx={transaction_id}",
        qr_code_url=f"https://verifier.example/qr/{transaction_id}",
    )


def completed_result(
    transaction_id: str = "tx-1",
    did: str = "did:example:holder",
    rank: str = "LIFE_WINNER_S",
) -> VerificationResult:
    return VerificationResult(
        transaction_id=transaction_id,
        status=VerificationStatus.COMPLETED,
        claim=RankCardClaim(did=did, rank=rank),
    )


@pytest.fixture
def member_service(uow_factory):
    return MemberService(uow_factory)


@pytest.fixture
def verifier():
    mock = AsyncMock()
    mock.initiate_verification.return_value = pending_result()
    mock.check_verification_status.return_value = pending_result()
    return mock


@pytest.fixture
def verification_service(uow_factory, verifier, clock):
    return RankCardVerificationService(uow_factory, verifier, TTL_MS, clock=clock)


class TestMemberService:
    """Registration and profile maintenance."""

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, member_service):
        first = await member_service.register_or_get("sub-1", "Alice")
        second = await member_service.register_or_get("sub-1", "Someone else")

        assert second.id == first.id
        assert second.nickname == "Alice"
        assert first.status == MemberStatus.GENERAL

    @pytest.mark.asyncio
    async def test_register_rejects_blank_nickname(self, member_service):
        with pytest.raises(InvalidArgumentError):
            await member_service.register_or_get("sub-1", "  ")

    @pytest.mark.asyncio
    async def test_update_profile(self, member_service):
        member = await member_service.register_or_get("sub-1", "Alice")

        updated = await member_service.update_profile(member.id, "female", "tennis")
        reloaded = await member_service.get_member(member.id)

        assert updated.version == member.version + 1
        assert reloaded.gender == "female"
        assert reloaded.interests == "tennis"

    @pytest.mark.asyncio
    async def test_unknown_member(self, member_service):
        with pytest.raises(MemberNotFoundError):
            await member_service.get_member("missing")
        with pytest.raises(MemberNotFoundError):
            await member_service.update_profile("missing", "male", "golf")


class TestStartVerification:
    """Opening a verification transaction."""

    @pytest.mark.asyncio
    async def test_start_records_pending_session(
        self, member_service, verification_service, verifier, clock
    ):
        member = await member_service.register_or_get("sub-1", "Alice")

        vc_session = await verification_service.start_verification(member.id)

        verifier.initiate_verification.assert_awaited_once_with(member.id)
        assert vc_session.status == VerificationStatus.PENDING
        assert vc_session.auth_uri.startswith("openid4vp://")
        assert vc_session.expires_at == clock() + TTL_MS

    @pytest.mark.asyncio
    async def test_start_reuses_unexpired_pending(
        self, member_service, verification_service, verifier
    ):
        member = await member_service.register_or_get("sub-1", "Alice")

        first = await verification_service.start_verification(member.id)
        second = await verification_service.start_verification(member.id)

        assert second.transaction_id == first.transaction_id
        verifier.initiate_verification.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_replaces_expired_pending(
        self, member_service, verification_service, verifier, clock
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        first = await verification_service.start_verification(member.id)
        clock.advance(TTL_MS)
        verifier.initiate_verification.return_value = pending_result("tx-2")

        second = await verification_service.start_verification(member.id)

        assert second.transaction_id == "tx-2"
        with pytest.raises(VerificationSessionNotFoundError):
            await verification_service.poll_verification("tx-unknown")
        old = await verification_service.poll_verification(first.transaction_id)
        assert old.status == VerificationStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_start_rejects_unknown_member(self, verification_service):
        with pytest.raises(MemberNotFoundError):
            await verification_service.start_verification("missing")


class TestPollVerification:
    """Applying verifier outcomes."""

    @pytest.mark.asyncio
    async def test_pending_stays_pending(self, member_service, verification_service):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)

        vc_session = await verification_service.poll_verification("tx-1")

        assert vc_session.status == VerificationStatus.PENDING

    @pytest.mark.asyncio
    async def test_completed_verifies_member(
        self, member_service, verification_service, verifier
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        verifier.check_verification_status.return_value = completed_result()

        vc_session = await verification_service.poll_verification("tx-1")
        verified = await member_service.get_member(member.id)

        assert vc_session.status == VerificationStatus.COMPLETED
        assert vc_session.extracted_rank == Rank.LIFE_WINNER_S
        assert verified.is_verified
        assert verified.derived_rank == Rank.LIFE_WINNER_S
        assert verified.linked_vc_did == "did:example:holder"

    @pytest.mark.asyncio
    async def test_finished_session_is_not_polled_again(
        self, member_service, verification_service, verifier
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        verifier.check_verification_status.return_value = completed_result()
        await verification_service.poll_verification("tx-1")

        again = await verification_service.poll_verification("tx-1")

        assert again.status == VerificationStatus.COMPLETED
        verifier.check_verification_status.assert_awaited_once()
        with pytest.raises(AlreadyVerifiedError):
            await verification_service.start_verification(member.id)

    @pytest.mark.asyncio
    async def test_failed_result_closes_session(
        self, member_service, verification_service, verifier
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        verifier.check_verification_status.return_value = VerificationResult(
            transaction_id="tx-1",
            status=VerificationStatus.FAILED,
            error_message="Credential revoked",
        )

        vc_session = await verification_service.poll_verification("tx-1")

        assert vc_session.status == VerificationStatus.FAILED
        assert vc_session.error == "Credential revoked"
        assert not (await member_service.get_member(member.id)).is_verified

    @pytest.mark.asyncio
    async def test_locally_expired_session_skips_verifier(
        self, member_service, verification_service, verifier, clock
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        clock.advance(TTL_MS + 1)

        vc_session = await verification_service.poll_verification("tx-1")

        assert vc_session.status == VerificationStatus.EXPIRED
        verifier.check_verification_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_did_owned_by_other_member(
        self, member_service, verification_service, verifier
    ):
        owner = await member_service.register_or_get("sub-owner", "Owner")
        await verification_service.start_verification(owner.id)
        verifier.check_verification_status.return_value = completed_result()
        await verification_service.poll_verification("tx-1")

        other = await member_service.register_or_get("sub-other", "Other")
        verifier.initiate_verification.return_value = pending_result("tx-2")
        await verification_service.start_verification(other.id)
        verifier.check_verification_status.return_value = completed_result("tx-2")

        with pytest.raises(DidAlreadyLinkedError):
            await verification_service.poll_verification("tx-2")

        assert not (await member_service.get_member(other.id)).is_verified
        verifier.check_verification_status.return_value = pending_result("tx-2")
        still_open = await verification_service.poll_verification("tx-2")
        assert still_open.status == VerificationStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_rank_fails_session(
        self, member_service, verification_service, verifier
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        verifier.check_verification_status.return_value = completed_result(rank="PLATINUM")

        vc_session = await verification_service.poll_verification("tx-1")
        again = await verification_service.poll_verification("tx-1")

        assert vc_session.status == VerificationStatus.FAILED
        assert "PLATINUM" in vc_session.error
        assert again.status == VerificationStatus.FAILED
        verifier.check_verification_status.assert_awaited_once()
        assert not (await member_service.get_member(member.id)).is_verified

    @pytest.mark.asyncio
    async def test_claim_for_verified_member_fails_session(
        self, member_service, verification_service, verifier, uow_factory, clock
    ):
        member = await member_service.register_or_get("sub-1", "Alice")
        await verification_service.start_verification(member.id)
        verifier.check_verification_status.return_value = completed_result()
        await verification_service.poll_verification("tx-1")
        async with uow_factory() as uow:
            await uow.vc_sessions.add(
                VCVerificationSession.start("tx-2", member.id, ttl_ms=TTL_MS, now=clock())
            )
        verifier.check_verification_status.return_value = completed_result("tx-2")

        vc_session = await verification_service.poll_verification("tx-2")

        assert vc_session.status == VerificationStatus.FAILED
        async with uow_factory() as uow:
            stored = await uow.vc_sessions.get("tx-2")
        assert stored.status == VerificationStatus.FAILED
        assert (await member_service.get_member(member.id)).derived_rank == Rank.LIFE_WINNER_S
