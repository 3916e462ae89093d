from rankgate.modules.community.domain.interfaces.services.chat_channel_provider import (
    ChatChannel,
    IChatChannelProvider,
)
from rankgate.modules.community.domain.interfaces.services.rank_verification_service import (
    IRankVerificationService,
    RankCardClaim,
    VerificationResult,
)

__all__ = [
    "ChatChannel",
    "IChatChannelProvider",
    "IRankVerificationService",
    "RankCardClaim",
    "VerificationResult",
]
