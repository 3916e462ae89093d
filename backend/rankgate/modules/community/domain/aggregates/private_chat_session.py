"""PrivateChatSession aggregate.

State machine::

    ACTIVE --terminate()-----> TERMINATED
    ACTIVE --mark_as_expired()-> EXPIRED

Both targets are terminal. ``is_expired`` is a pure time check; the caller
decides when to persist the EXPIRED transition.
"""

from typing import Any

from rankgate.core.domain.base import AggregateRoot, utc_now_ms
from rankgate.modules.community.domain.enums import SessionStatus, SessionType
from rankgate.modules.community.domain.errors import (
    AlreadyTerminalError,
    InvalidArgumentError,
)
from rankgate.modules.community.domain.events import SessionExpired, SessionTerminated
from rankgate.modules.community.domain.validation import require_int, require_text


class PrivateChatSession(AggregateRoot):
    """Ephemeral one-to-one chat between two members."""

    aggregate_type = "PrivateChatSession"

    def __init__(
        self,
        member_a_id: str,
        member_b_id: str,
        tlk_channel_id: str,
        session_type: SessionType,
        expires_at: int,
        status: SessionStatus = SessionStatus.ACTIVE,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.member_a_id = member_a_id
        self.member_b_id = member_b_id
        self.tlk_channel_id = tlk_channel_id
        self.session_type = session_type
        self.expires_at = expires_at
        self.status = status

    @classmethod
    def create(
        cls,
        member_a_id: str,
        member_b_id: str,
        tlk_channel_id: str,
        session_type: SessionType | str,
        expires_at: int,
        entity_id: str | None = None,
        now: int | None = None,
    ) -> "PrivateChatSession":
        """
        Open an ACTIVE session at version 1, created at ``now`` (defaults to
        the wall clock).

        Raises:
            InvalidArgumentError: If ids are blank or equal, the type is unknown
                or ``expires_at`` is not strictly after the creation time
        """
        require_text(member_a_id, "member_a_id")
        require_text(member_b_id, "member_b_id")
        if member_a_id == member_b_id:
            raise InvalidArgumentError("member_b_id", "must differ from member_a_id")
        require_text(tlk_channel_id, "tlk_channel_id")
        try:
            session_type = SessionType(session_type)
        except ValueError as e:
            raise InvalidArgumentError("session_type", "unknown session type", session_type) from e
        require_int(expires_at, "expires_at")

        created_at = utc_now_ms() if now is None else require_int(now, "now")
        if expires_at <= created_at:
            raise InvalidArgumentError("expires_at", "must be in the future", expires_at)

        return cls(
            member_a_id=member_a_id,
            member_b_id=member_b_id,
            tlk_channel_id=tlk_channel_id,
            session_type=session_type,
            expires_at=expires_at,
            entity_id=entity_id,
            created_at=created_at,
        )

    @classmethod
    def reconstitute(
        cls,
        entity_id: str,
        member_a_id: str,
        member_b_id: str,
        tlk_channel_id: str,
        session_type: SessionType,
        expires_at: int,
        status: SessionStatus,
        version: int,
        created_at: int,
        updated_at: int,
    ) -> "PrivateChatSession":
        return cls(
            member_a_id=member_a_id,
            member_b_id=member_b_id,
            tlk_channel_id=tlk_channel_id,
            session_type=session_type,
            expires_at=expires_at,
            status=status,
            entity_id=entity_id,
            version=version,
            created_at=created_at,
            updated_at=updated_at,
            persisted_version=version,
        )

    # ------------------------------------------------------------------ queries

    def is_expired(self, at_time: int | None = None) -> bool:
        """True once ``at_time`` (default: now) reaches ``expires_at``."""
        if at_time is None:
            at_time = utc_now_ms()
        return at_time >= self.expires_at

    def is_active(self, at_time: int | None = None) -> bool:
        """ACTIVE and not yet past its expiry time."""
        return self.status == SessionStatus.ACTIVE and not self.is_expired(at_time)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def remaining_ms(self, at_time: int | None = None) -> int:
        if at_time is None:
            at_time = utc_now_ms()
        return max(self.expires_at - at_time, 0)

    def involves_member(self, member_id: str) -> bool:
        return member_id in (self.member_a_id, self.member_b_id)

    is_participant = involves_member

    def involves_members(self, first_id: str, second_id: str) -> bool:
        """Order-independent check that the session is between exactly these two."""
        return {first_id, second_id} == {self.member_a_id, self.member_b_id}

    def get_other_member_id(self, member_id: str) -> str | None:
        if member_id == self.member_a_id:
            return self.member_b_id
        if member_id == self.member_b_id:
            return self.member_a_id
        return None

    # ------------------------------------------------------------------ commands

    def terminate(self) -> None:
        """
        End the session on request.

        Raises:
            AlreadyTerminalError: If the session is EXPIRED or TERMINATED
        """
        self._ensure_active()
        self.status = SessionStatus.TERMINATED
        self.increment_version()
        self.add_event(
            SessionTerminated(
                session_id=self.id,
                terminated_at=self.updated_at,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type,
                aggregate_version=self.version,
            )
        )

    def mark_as_expired(self) -> None:
        """
        Record that the session ran out of time.

        Raises:
            AlreadyTerminalError: If the session is EXPIRED or TERMINATED
        """
        self._ensure_active()
        self.status = SessionStatus.EXPIRED
        self.increment_version()
        self.add_event(
            SessionExpired(
                session_id=self.id,
                expired_at=self.updated_at,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type,
                aggregate_version=self.version,
            )
        )

    def _ensure_active(self) -> None:
        if self.status.is_terminal:
            raise AlreadyTerminalError(self.id, self.status.value)

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "member_a_id": self.member_a_id,
            "member_b_id": self.member_b_id,
            "tlk_channel_id": self.tlk_channel_id,
            "session_type": self.session_type,
            "expires_at": self.expires_at,
            "status": self.status,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
