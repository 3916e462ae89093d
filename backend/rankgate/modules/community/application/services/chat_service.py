"""Private chat application service."""

from collections.abc import Callable, Mapping

from rankgate.core.domain.base import new_id, utc_now_ms
from rankgate.core.logging import get_logger
from rankgate.modules.community.application.errors import (
    ActiveSessionExistsError,
    MemberNotFoundError,
    NotSessionParticipantError,
    SessionClosedError,
    SessionNotFoundError,
)
from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)
from rankgate.modules.community.domain.enums import SessionStatus, SessionType
from rankgate.modules.community.domain.errors import InvalidArgumentError
from rankgate.modules.community.domain.interfaces.services import (
    ChatChannel,
    IChatChannelProvider,
)
from rankgate.modules.community.domain.services.session_expiry_service import (
    SessionExpiryService,
)
from rankgate.modules.community.domain.value_objects.expiry_policy import ExpiryPolicy
from rankgate.modules.community.infrastructure.unit_of_work import (
    CommunityUnitOfWork,
    UnitOfWorkFactory,
)

logger = get_logger(__name__)


class PrivateChatService:
    """Opens, enters and ends one-to-one chat sessions."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        channel_provider: IChatChannelProvider,
        policies: Mapping[SessionType, ExpiryPolicy] | None = None,
        clock: Callable[[], int] = utc_now_ms,
    ):
        self._uow_factory = uow_factory
        self._channels = channel_provider
        self._policies = policies
        self._clock = clock

    def _expiry_service(self, uow: CommunityUnitOfWork) -> SessionExpiryService:
        return SessionExpiryService(
            uow.chat_sessions, uow.vc_sessions, policies=self._policies, clock=self._clock
        )

    async def open_session(
        self, member_a_id: str, member_b_id: str, session_type: SessionType | str
    ) -> PrivateChatSession:
        """Open a session between two members.

        An earlier session between the same pair that ran out of time is
        marked EXPIRED first.

        Raises:
            MemberNotFoundError: If either member does not exist
            ActiveSessionExistsError: If the pair already has a live session
            InvalidArgumentError: If the members are equal or the type is unknown
        """
        try:
            session_type = SessionType(session_type)
        except ValueError as e:
            raise InvalidArgumentError(
                "session_type", "unknown session type", session_type
            ) from e

        now = self._clock()
        async with self._uow_factory() as uow:
            member_a = await self._load_member(uow, member_a_id)
            await self._load_member(uow, member_b_id)

            existing = await uow.chat_sessions.find_active_session_between_members(
                member_a_id, member_b_id
            )
            if existing is not None:
                if existing.is_active(now):
                    raise ActiveSessionExistsError(existing.id)
                existing.mark_as_expired()
                await uow.chat_sessions.save(existing)

            expiry = self._expiry_service(uow)
            expires_at = expiry.calculate_expiry_time(now, expiry.policy_for(session_type))

            session_id = new_id()
            channel = self._channels.session_channel(session_id, member_a.nickname)
            session = PrivateChatSession.create(
                member_a_id=member_a_id,
                member_b_id=member_b_id,
                tlk_channel_id=channel.channel_id,
                session_type=session_type,
                expires_at=expires_at,
                entity_id=session_id,
                now=now,
            )
            await uow.chat_sessions.save(session)

        logger.info(
            "Chat session opened",
            session_id=session.id,
            session_type=session_type.value,
            expires_at=expires_at,
        )
        return session

    async def enter_session(self, member_id: str, session_id: str) -> ChatChannel:
        """Return the chat channel for a participant of a live session.

        A session found past its expiry time is marked EXPIRED and committed
        before ``SessionClosedError`` is raised.

        Raises:
            SessionNotFoundError: If the session does not exist
            NotSessionParticipantError: If the member is not part of it
            SessionClosedError: If the session is expired or terminated
        """
        closed_status: SessionStatus | None = None
        async with self._uow_factory() as uow:
            session = await self._load_session(uow, session_id)
            if not session.involves_member(member_id):
                raise NotSessionParticipantError(member_id, session_id)

            if session.status == SessionStatus.ACTIVE and session.is_expired(self._clock()):
                session.mark_as_expired()
                await uow.chat_sessions.save(session)
                logger.info("Chat session expired on access", session_id=session_id)

            if session.is_terminal:
                closed_status = session.status
            else:
                member = await self._load_member(uow, member_id)
                channel = self._channels.session_channel(session.id, member.nickname)

        if closed_status is not None:
            raise SessionClosedError(session_id, closed_status.value)
        return channel

    async def terminate_session(self, member_id: str, session_id: str) -> PrivateChatSession:
        """End a session at a participant's request.

        Raises:
            SessionNotFoundError: If the session does not exist
            NotSessionParticipantError: If the member is not part of it
            AlreadyTerminalError: If the session already ended
        """
        async with self._uow_factory() as uow:
            session = await self._load_session(uow, session_id)
            if not session.involves_member(member_id):
                raise NotSessionParticipantError(member_id, session_id)
            session.terminate()
            await uow.chat_sessions.save(session)

        logger.info("Chat session terminated", session_id=session_id, member_id=member_id)
        return session

    @staticmethod
    async def _load_member(uow: CommunityUnitOfWork, member_id: str) -> MemberProfile:
        member = await uow.members.find_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    @staticmethod
    async def _load_session(uow: CommunityUnitOfWork, session_id: str) -> PrivateChatSession:
        session = await uow.chat_sessions.find_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session
