from rankgate.modules.community.domain.aggregates.forum import Forum
from rankgate.modules.community.domain.aggregates.member_profile import MemberProfile
from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)

__all__ = ["Forum", "MemberProfile", "PrivateChatSession"]
