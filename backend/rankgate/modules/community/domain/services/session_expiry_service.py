"""Session expiry domain service.

Finds private chat sessions whose time is up, moves them to EXPIRED and
clears stale Rank Card verification transactions and lapsed match queue
slots. Cleanup is best-effort:
a failure on one session is recorded in the result and the sweep carries on.
Re-running the sweep is safe because only sessions still ACTIVE are touched.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rankgate.core.domain.base import DomainService, utc_now_ms
from rankgate.core.infrastructure.repository import OptimisticLockError
from rankgate.modules.community.domain.aggregates.private_chat_session import (
    PrivateChatSession,
)
from rankgate.modules.community.domain.enums import SessionStatus, SessionType
from rankgate.modules.community.domain.errors import InvalidArgumentError
from rankgate.modules.community.domain.interfaces.repositories import (
    IMatchingQueueRepository,
    IPrivateChatSessionRepository,
    IVCVerificationSessionRepository,
)
from rankgate.modules.community.domain.validation import require_int
from rankgate.modules.community.domain.value_objects.expiry_policy import (
    DEFAULT_GRACE_PERIOD_MS,
    HOUR_MS,
    ExpiryPolicy,
)


@dataclass(frozen=True)
class ExpiryCheckResult:
    session_id: str
    is_expired: bool
    expires_at: int
    current_time: int
    status: SessionStatus
    grace_period_remaining_ms: int | None = None


@dataclass(frozen=True)
class CleanupError:
    """One failure collected during a cleanup sweep."""

    session_id: str | None
    message: str


@dataclass
class SessionCleanupResult:
    chat_sessions_processed: int = 0
    chat_sessions_cleaned: int = 0
    vc_sessions_processed: int = 0
    vc_sessions_cleaned: int = 0
    match_queue_cleaned: int = 0
    errors: list[CleanupError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chat_sessions_processed": self.chat_sessions_processed,
            "chat_sessions_cleaned": self.chat_sessions_cleaned,
            "vc_sessions_processed": self.vc_sessions_processed,
            "vc_sessions_cleaned": self.vc_sessions_cleaned,
            "match_queue_cleaned": self.match_queue_cleaned,
            "errors": [
                {"session_id": error.session_id, "message": error.message}
                for error in self.errors
            ],
        }


@dataclass(frozen=True)
class SessionStats:
    total_active: int
    expired: int
    expiring_within_hour: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_active": self.total_active,
            "expired": self.expired,
            "expiring_within_hour": self.expiring_within_hour,
        }


class SessionExpiryService(DomainService):
    """
    Expiry detection and cleanup across private chat sessions.

    Args:
        session_repository: Chat session persistence port
        vc_session_repository: Optional VC verification session store; when
            absent the VC part of the sweep is skipped
        policies: Expiry policy per session type, defaults to 24h / 12h
        grace_period_ms: Extra window used by ``find_expired_sessions`` when
            asked to include the grace period
        clock: Returns the current time in epoch milliseconds
        matching_queue_repository: Optional daily match queue; lapsed slots
            are removed by the sweep when given
    """

    def __init__(
        self,
        session_repository: IPrivateChatSessionRepository,
        vc_session_repository: IVCVerificationSessionRepository | None = None,
        policies: Mapping[SessionType, ExpiryPolicy] | None = None,
        grace_period_ms: int = DEFAULT_GRACE_PERIOD_MS,
        clock: Callable[[], int] = utc_now_ms,
        matching_queue_repository: IMatchingQueueRepository | None = None,
    ):
        self._sessions = session_repository
        self._vc_sessions = vc_session_repository
        self._matching_queue = matching_queue_repository
        self._policies = {
            session_type: ExpiryPolicy.default_for(session_type)
            for session_type in SessionType
        }
        if policies:
            self._policies.update(policies)
        self._grace_period_ms = require_int(grace_period_ms, "grace_period_ms", minimum=0)
        self._clock = clock

    def __str__(self) -> str:
        return "SessionExpiryService"

    # ------------------------------------------------------------------ policy

    def policy_for(self, session_type: SessionType) -> ExpiryPolicy:
        return self._policies[SessionType(session_type)]

    def calculate_expiry_time(self, created_at: int, policy: ExpiryPolicy) -> int:
        """``created_at + policy.duration_ms``."""
        require_int(created_at, "created_at", minimum=0)
        if not isinstance(policy, ExpiryPolicy):
            raise InvalidArgumentError("policy", "must be an ExpiryPolicy", policy)
        return created_at + policy.duration_ms

    # ------------------------------------------------------------------ queries

    async def find_expired_sessions(self, include_grace_period: bool = False) -> list[str]:
        """
        Ids of ACTIVE sessions whose expiry time has been reached.

        Args:
            include_grace_period: Also return sessions expiring within the
                grace period from now

        Returns:
            Session ids ordered by expiry time
        """
        cutoff = self._clock()
        if include_grace_period:
            cutoff += self._grace_period_ms
        sessions = await self._sessions.find_expired_sessions(cutoff)
        return [session.id for session in sessions]

    async def check_session_expiry(self, session_id: str) -> ExpiryCheckResult | None:
        """Expiry status of one session, or None if it does not exist."""
        session = await self._sessions.find_by_id(session_id)
        if session is None:
            return None

        now = self._clock()
        expired = session.is_expired(now) or session.status == SessionStatus.EXPIRED
        grace_remaining = None
        if session.is_expired(now):
            grace_end = session.expires_at + self.policy_for(session.session_type).grace_period_ms
            grace_remaining = max(grace_end - now, 0)

        return ExpiryCheckResult(
            session_id=session.id,
            is_expired=expired,
            expires_at=session.expires_at,
            current_time=now,
            status=session.status,
            grace_period_remaining_ms=grace_remaining,
        )

    async def get_session_stats(self) -> SessionStats:
        now = self._clock()
        return SessionStats(
            total_active=await self._sessions.count_by_status(SessionStatus.ACTIVE),
            expired=await self._sessions.count_by_status(SessionStatus.EXPIRED),
            expiring_within_hour=await self._sessions.count_active_expiring_between(
                now, now + HOUR_MS
            ),
        )

    # ------------------------------------------------------------------ cleanup

    async def cleanup_expired_sessions(self) -> SessionCleanupResult:
        """
        Mark every overdue ACTIVE session EXPIRED and purge stale VC sessions.

        Never raises for individual failures; they are collected in
        ``SessionCleanupResult.errors``.
        """
        result = SessionCleanupResult()
        now = self._clock()

        try:
            sessions = await self._sessions.find_expired_sessions(now)
        except Exception as e:
            result.errors.append(CleanupError(None, f"Failed to list expired sessions: {e}"))
            sessions = []

        for session in sessions:
            result.chat_sessions_processed += 1
            try:
                if await self._expire(session, now):
                    result.chat_sessions_cleaned += 1
            except Exception as e:
                result.errors.append(CleanupError(session.id, str(e)))

        if self._vc_sessions is not None:
            try:
                removed = await self._vc_sessions.delete_expired(now)
            except Exception as e:
                result.errors.append(CleanupError(None, f"VC session cleanup failed: {e}"))
            else:
                result.vc_sessions_processed = removed
                result.vc_sessions_cleaned = removed

        if self._matching_queue is not None:
            try:
                result.match_queue_cleaned = await self._matching_queue.delete_expired(now)
            except Exception as e:
                result.errors.append(CleanupError(None, f"Match queue cleanup failed: {e}"))

        return result

    async def _expire(self, session: PrivateChatSession, now: int) -> bool:
        # Terminated or already expired sessions are left alone
        if session.status != SessionStatus.ACTIVE or not session.is_expired(now):
            return False
        session.mark_as_expired()
        try:
            await self._sessions.save(session)
        except OptimisticLockError:
            # Someone else ended the session after it was listed
            current = await self._sessions.find_by_id(session.id)
            if current is None or current.is_terminal:
                return False
            raise
        return True
