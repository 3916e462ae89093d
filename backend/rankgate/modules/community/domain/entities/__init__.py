from rankgate.modules.community.domain.entities.matching_queue_entry import (
    MatchingQueueEntry,
)
from rankgate.modules.community.domain.entities.vc_verification_session import (
    VCVerificationSession,
)

__all__ = ["MatchingQueueEntry", "VCVerificationSession"]
