from rankgate.modules.community.infrastructure.models.forum import ForumModel
from rankgate.modules.community.infrastructure.models.matching_queue import (
    MatchingQueueModel,
)
from rankgate.modules.community.infrastructure.models.member_profile import (
    MemberProfileModel,
)
from rankgate.modules.community.infrastructure.models.private_chat_session import (
    PrivateChatSessionModel,
)
from rankgate.modules.community.infrastructure.models.vc_verification_session import (
    VCVerificationSessionModel,
)

__all__ = [
    "ForumModel",
    "MatchingQueueModel",
    "MemberProfileModel",
    "PrivateChatSessionModel",
    "VCVerificationSessionModel",
]
