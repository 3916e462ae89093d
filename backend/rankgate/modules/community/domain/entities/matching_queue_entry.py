"""A member waiting in the daily match queue."""

from dataclasses import dataclass

from rankgate.core.domain.base import utc_now_ms
from rankgate.modules.community.domain.enums import Rank
from rankgate.modules.community.domain.errors import InvalidArgumentError
from rankgate.modules.community.domain.validation import require_text


@dataclass
class MatchingQueueEntry:
    """
    Queue slot of one member. A member holds at most one slot; joining again
    replaces it. Slots past ``expires_at`` are never matched and are removed
    by the background cleanup.
    """

    member_id: str
    rank: Rank
    joined_at: int
    expires_at: int

    @classmethod
    def join(
        cls, member_id: str, rank: Rank, ttl_ms: int, now: int | None = None
    ) -> "MatchingQueueEntry":
        require_text(member_id, "member_id")
        if ttl_ms <= 0:
            raise InvalidArgumentError("ttl_ms", "must be positive", ttl_ms)
        now = utc_now_ms() if now is None else now
        return cls(member_id=member_id, rank=rank, joined_at=now, expires_at=now + ttl_ms)

    def is_expired(self, at_time: int | None = None) -> bool:
        at_time = utc_now_ms() if at_time is None else at_time
        return at_time >= self.expires_at
