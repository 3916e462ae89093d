from rankgate.modules.community.domain.interfaces.repositories.forum_repository import (
    IForumRepository,
)
from rankgate.modules.community.domain.interfaces.repositories.matching_queue_repository import (
    IMatchingQueueRepository,
)
from rankgate.modules.community.domain.interfaces.repositories.member_profile_repository import (
    IMemberProfileRepository,
)
from rankgate.modules.community.domain.interfaces.repositories.private_chat_session_repository import (
    IPrivateChatSessionRepository,
)
from rankgate.modules.community.domain.interfaces.repositories.vc_verification_session_repository import (
    IVCVerificationSessionRepository,
)

__all__ = [
    "IForumRepository",
    "IMatchingQueueRepository",
    "IMemberProfileRepository",
    "IPrivateChatSessionRepository",
    "IVCVerificationSessionRepository",
]
