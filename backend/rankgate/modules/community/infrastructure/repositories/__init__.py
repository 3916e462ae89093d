from rankgate.modules.community.infrastructure.repositories.forum_repository import (
    SQLForumRepository,
)
from rankgate.modules.community.infrastructure.repositories.matching_queue_repository import (
    SQLMatchingQueueRepository,
)
from rankgate.modules.community.infrastructure.repositories.member_profile_repository import (
    SQLMemberProfileRepository,
)
from rankgate.modules.community.infrastructure.repositories.private_chat_session_repository import (
    SQLPrivateChatSessionRepository,
)
from rankgate.modules.community.infrastructure.repositories.vc_verification_session_repository import (
    SQLVCVerificationSessionRepository,
)

__all__ = [
    "SQLForumRepository",
    "SQLMatchingQueueRepository",
    "SQLMemberProfileRepository",
    "SQLPrivateChatSessionRepository",
    "SQLVCVerificationSessionRepository",
]
