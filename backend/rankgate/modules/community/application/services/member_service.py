"""Member application service.

Registers members on first login and maintains their personal fields.
"""

from rankgate.core.infrastructure.repository import UniqueConstraintError
from rankgate.core.logging import get_logger
from rankgate.modules.community.application.errors import MemberNotFoundError
from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.infrastructure.unit_of_work import UnitOfWorkFactory

logger = get_logger(__name__)


class MemberService:
    """Application service for member profiles."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def register_or_get(
        self,
        oidc_subject_id: str,
        nickname: str,
        gender: str | None = None,
        interests: str | None = None,
    ) -> MemberProfile:
        """Return the member for an identity provider subject, creating it if needed.

        Args:
            oidc_subject_id: Subject claim from the identity provider
            nickname: Display name for a new member
            gender: Optional personal field for a new member
            interests: Optional personal field for a new member

        Returns:
            MemberProfile: Existing or newly created member

        Raises:
            InvalidArgumentError: If subject or nickname is blank
        """
        try:
            async with self._uow_factory() as uow:
                existing = await uow.members.find_by_oidc_subject_id(oidc_subject_id)
                if existing is not None:
                    return existing

                member = MemberProfile.create(
                    oidc_subject_id=oidc_subject_id,
                    nickname=nickname,
                    gender=gender,
                    interests=interests,
                )
                await uow.members.save(member)
        except UniqueConstraintError as e:
            if e.field_name != "oidc_subject_id":
                raise
            # Lost a registration race; the winner's row is committed
            logger.info(
                "Member registered concurrently, loading existing profile",
                oidc_subject_id=oidc_subject_id,
            )
            async with self._uow_factory() as uow:
                existing = await uow.members.find_by_oidc_subject_id(oidc_subject_id)
            if existing is None:
                raise
            return existing

        logger.info("Member registered", member_id=member.id)
        return member

    async def get_member(self, member_id: str) -> MemberProfile:
        async with self._uow_factory() as uow:
            member = await uow.members.find_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def update_profile(self, member_id: str, gender: str, interests: str) -> MemberProfile:
        """Replace a member's gender and interests.

        Raises:
            MemberNotFoundError: If the member does not exist
            InvalidArgumentError: If either value is blank
            OptimisticLockError: If the member changed concurrently
        """
        async with self._uow_factory() as uow:
            member = await uow.members.find_by_id(member_id)
            if member is None:
                raise MemberNotFoundError(member_id)
            member.update_profile(gender, interests)
            await uow.members.save(member)

        logger.info("Member profile updated", member_id=member_id, version=member.version)
        return member
