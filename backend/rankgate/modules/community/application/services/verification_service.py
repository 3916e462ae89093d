"""Rank Card verification application service.

Drives the verifier round trip: start a transaction, poll it until the
verifier reports an outcome, then link the credential to the member.
"""

from collections.abc import Callable

from rankgate.core.domain.base import utc_now_ms
from rankgate.core.infrastructure.repository import UniqueConstraintError
from rankgate.core.logging import get_logger
from rankgate.modules.community.application.errors import (
    DidAlreadyLinkedError,
    MemberNotFoundError,
    VerificationSessionNotFoundError,
)
from rankgate.modules.community.domain.entities.vc_verification_session import (
    VCVerificationSession,
)
from rankgate.modules.community.domain.enums import VerificationStatus
from rankgate.modules.community.domain.errors import (
    AlreadyVerifiedError,
    InvalidArgumentError,
)
from rankgate.modules.community.domain.interfaces.services import (
    IRankVerificationService,
    VerificationResult,
)
from rankgate.modules.community.infrastructure.unit_of_work import (
    CommunityUnitOfWork,
    UnitOfWorkFactory,
)

logger = get_logger(__name__)


class RankCardVerificationService:
    """Application service for Rank Card verification."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        verifier: IRankVerificationService,
        verification_ttl_ms: int,
        clock: Callable[[], int] = utc_now_ms,
    ):
        """
        Args:
            uow_factory: Opens a unit of work per operation
            verifier: External Rank Card verifier
            verification_ttl_ms: Lifetime of a pending transaction
            clock: Returns the current time in epoch milliseconds
        """
        self._uow_factory = uow_factory
        self._verifier = verifier
        self._ttl_ms = verification_ttl_ms
        self._clock = clock

    async def start_verification(self, member_id: str) -> VCVerificationSession:
        """Start, or resume, a verification transaction for a member.

        Returns:
            VCVerificationSession: Pending transaction with the auth URI to show

        Raises:
            MemberNotFoundError: If the member does not exist
            AlreadyVerifiedError: If the member already linked a Rank Card
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            member = await uow.members.find_by_id(member_id)
            if member is None:
                raise MemberNotFoundError(member_id)
            if member.is_verified:
                raise AlreadyVerifiedError(member_id)

            pending = await uow.vc_sessions.get_pending_for_member(member_id)
            if pending is not None:
                if not pending.is_expired(now):
                    logger.debug(
                        "Reusing pending verification",
                        member_id=member_id,
                        transaction_id=pending.transaction_id,
                    )
                    return pending
                pending.expire(now)
                await uow.vc_sessions.update(pending)

            result = await self._verifier.initiate_verification(member_id)
            vc_session = VCVerificationSession.start(
                transaction_id=result.transaction_id,
                member_id=member_id,
                ttl_ms=self._ttl_ms,
                auth_uri=result.auth_uri,
                qr_code_url=result.qr_code_url,
                now=now,
            )
            await uow.vc_sessions.add(vc_session)

        logger.info(
            "Verification started",
            member_id=member_id,
            transaction_id=vc_session.transaction_id,
        )
        return vc_session

    async def poll_verification(self, transaction_id: str) -> VCVerificationSession:
        """Advance a verification transaction.

        A credential with an unknown rank, or one presented for a member who
        is already verified, closes the transaction as FAILED.

        Returns:
            VCVerificationSession: The transaction after this poll; COMPLETED
            means the member is now verified

        Raises:
            VerificationSessionNotFoundError: If the transaction is unknown
            DidAlreadyLinkedError: If the credential belongs to another member
        """
        now = self._clock()
        try:
            async with self._uow_factory() as uow:
                vc_session = await uow.vc_sessions.get(transaction_id)
                if vc_session is None:
                    raise VerificationSessionNotFoundError(transaction_id)
                if not vc_session.is_pending:
                    return vc_session

                if vc_session.is_expired(now):
                    vc_session.expire(now)
                    await uow.vc_sessions.update(vc_session)
                    logger.info("Verification expired", transaction_id=transaction_id)
                    return vc_session

                result = await self._verifier.check_verification_status(transaction_id)
                await self._apply_result(uow, vc_session, result, now)
        except UniqueConstraintError as e:
            if e.field_name != "linked_vc_did":
                raise
            raise DidAlreadyLinkedError(str(e.field_value)) from e

        return vc_session

    async def _apply_result(
        self,
        uow: CommunityUnitOfWork,
        vc_session: VCVerificationSession,
        result: VerificationResult,
        now: int,
    ) -> None:
        if result.status == VerificationStatus.PENDING:
            return

        if result.status == VerificationStatus.EXPIRED:
            vc_session.expire(now)
        elif result.status == VerificationStatus.FAILED or result.claim is None:
            vc_session.fail(result.error_message or "Verification failed", now)
        else:
            claim = result.claim
            member = await uow.members.find_by_id(vc_session.member_id)
            if member is None:
                raise MemberNotFoundError(vc_session.member_id)

            owner = await uow.members.find_by_linked_vc_did(claim.did)
            if owner is not None and owner.id != member.id:
                logger.warning(
                    "Rank Card already linked to another member",
                    member_id=member.id,
                    transaction_id=vc_session.transaction_id,
                )
                raise DidAlreadyLinkedError(claim.did)

            try:
                member.verify_with_rank_card(claim.did, claim.rank)
            except (AlreadyVerifiedError, InvalidArgumentError) as e:
                logger.warning(
                    "Rank Card rejected",
                    member_id=member.id,
                    transaction_id=vc_session.transaction_id,
                    reason=e.code,
                )
                vc_session.fail(e.message, now)
            else:
                await uow.members.save(member)
                vc_session.complete(claim.did, member.derived_rank, now)
                logger.info(
                    "Member verified",
                    member_id=member.id,
                    rank=member.derived_rank.value,
                )

        await uow.vc_sessions.update(vc_session)
        if vc_session.status != VerificationStatus.COMPLETED:
            logger.info(
                "Verification closed",
                transaction_id=vc_session.transaction_id,
                status=vc_session.status.value,
                error=vc_session.error,
            )
