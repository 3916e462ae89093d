from rankgate.modules.community.application.services.chat_service import PrivateChatService
from rankgate.modules.community.application.services.forum_service import (
    ForumEntry,
    ForumService,
)
from rankgate.modules.community.application.services.matching_service import (
    MatchingService,
    MatchState,
    MatchStatus,
)
from rankgate.modules.community.application.services.member_service import MemberService
from rankgate.modules.community.application.services.verification_service import (
    RankCardVerificationService,
)

__all__ = [
    "ForumEntry",
    "ForumService",
    "MatchState",
    "MatchStatus",
    "MatchingService",
    "MemberService",
    "PrivateChatService",
    "RankCardVerificationService",
]
