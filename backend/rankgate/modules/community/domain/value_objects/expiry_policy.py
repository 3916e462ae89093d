"""Expiry policy for private chat sessions."""

from rankgate.core.domain.base import ValueObject
from rankgate.modules.community.domain.enums import SessionType
from rankgate.modules.community.domain.errors import InvalidArgumentError

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000

DEFAULT_DURATIONS_MS: dict[SessionType, int] = {
    SessionType.DAILY_MATCH: 24 * HOUR_MS,
    SessionType.GROUP_INITIATED: 12 * HOUR_MS,
}
DEFAULT_GRACE_PERIOD_MS = 5 * MINUTE_MS


class ExpiryPolicy(ValueObject):
    """
    How long a session of a given type lives.

    ``grace_period_ms`` only widens the background sweep's search window; it
    never changes when a session counts as expired.
    """

    def __init__(
        self,
        session_type: SessionType,
        duration_ms: int,
        grace_period_ms: int = DEFAULT_GRACE_PERIOD_MS,
        auto_cleanup: bool = True,
    ):
        super().__init__()
        if not isinstance(session_type, SessionType):
            raise InvalidArgumentError("session_type", "must be a SessionType", session_type)
        if isinstance(duration_ms, bool) or not isinstance(duration_ms, int) or duration_ms <= 0:
            raise InvalidArgumentError("duration_ms", "must be a positive integer", duration_ms)
        if (
            isinstance(grace_period_ms, bool)
            or not isinstance(grace_period_ms, int)
            or grace_period_ms < 0
        ):
            raise InvalidArgumentError(
                "grace_period_ms", "must be a non-negative integer", grace_period_ms
            )

        self.session_type = session_type
        self.duration_ms = duration_ms
        self.grace_period_ms = grace_period_ms
        self.auto_cleanup = auto_cleanup
        self._freeze()

    @classmethod
    def default_for(cls, session_type: SessionType) -> "ExpiryPolicy":
        return cls(session_type, DEFAULT_DURATIONS_MS[session_type])

    @classmethod
    def from_hours(
        cls, session_type: SessionType, hours: int, grace_period_ms: int = DEFAULT_GRACE_PERIOD_MS
    ) -> "ExpiryPolicy":
        return cls(session_type, hours * HOUR_MS, grace_period_ms)

    def __str__(self) -> str:
        return f"{self.session_type.value}: {self.duration_ms // MINUTE_MS} min"
