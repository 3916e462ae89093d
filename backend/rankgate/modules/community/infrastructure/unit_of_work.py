"""Unit of work exposing the community repositories."""

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rankgate.core.infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from rankgate.modules.community.infrastructure.repositories import (
    SQLForumRepository,
    SQLMatchingQueueRepository,
    SQLMemberProfileRepository,
    SQLPrivateChatSessionRepository,
    SQLVCVerificationSessionRepository,
)
from rankgate.modules.community.infrastructure.security.field_encryption import (
    FieldEncryptionService,
)


class CommunityUnitOfWork(SQLAlchemyUnitOfWork):
    """
    One transaction over members, forums, chat sessions, VC sessions and
    the match queue.

    Domain events raised by saved aggregates are written to the outbox in the
    same transaction.
    """

    members: SQLMemberProfileRepository
    forums: SQLForumRepository
    chat_sessions: SQLPrivateChatSessionRepository
    vc_sessions: SQLVCVerificationSessionRepository
    matching_queue: SQLMatchingQueueRepository

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        encryption: FieldEncryptionService,
    ):
        super().__init__(session_factory)
        self._encryption = encryption

    async def __aenter__(self) -> "CommunityUnitOfWork":
        await super().__aenter__()
        return self

    def _bind_repositories(self, session: AsyncSession) -> None:
        self.members = SQLMemberProfileRepository(session, self._encryption, self.outbox)
        self.forums = SQLForumRepository(session, self.outbox)
        self.chat_sessions = SQLPrivateChatSessionRepository(session, self.outbox)
        self.vc_sessions = SQLVCVerificationSessionRepository(session)
        self.matching_queue = SQLMatchingQueueRepository(session)


UnitOfWorkFactory = Callable[[], CommunityUnitOfWork]


def community_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
    encryption: FieldEncryptionService,
) -> UnitOfWorkFactory:
    """Return a callable that opens a fresh ``CommunityUnitOfWork`` per call."""

    def factory() -> CommunityUnitOfWork:
        return CommunityUnitOfWork(session_factory, encryption)

    return factory
