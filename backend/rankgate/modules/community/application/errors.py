"""Application-level errors raised by community services."""

from typing import Any

from rankgate.core.errors import (
    ApplicationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
)


class MemberNotFoundError(NotFoundError):
    default_code = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: str, **kwargs: Any) -> None:
        super().__init__("Member", member_id, **kwargs)


class ForumNotFoundError(NotFoundError):
    default_code = "FORUM_NOT_FOUND"

    def __init__(self, forum_id: str, **kwargs: Any) -> None:
        super().__init__("Forum", forum_id, **kwargs)


class SessionNotFoundError(NotFoundError):
    default_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str, **kwargs: Any) -> None:
        super().__init__("Session", session_id, **kwargs)


class VerificationSessionNotFoundError(NotFoundError):
    default_code = "VERIFICATION_SESSION_NOT_FOUND"

    def __init__(self, transaction_id: str, **kwargs: Any) -> None:
        super().__init__("Verification session", transaction_id, **kwargs)


class ForumAccessDeniedError(ForbiddenError):
    """Member's rank does not admit them to the forum."""

    default_code = "FORUM_ACCESS_DENIED"

    def __init__(self, member_id: str, forum_id: str, reason: str, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "Your rank does not allow entry to this forum")
        super().__init__(f"Member {member_id} cannot enter forum {forum_id}: {reason}", **kwargs)
        self.details.update({"member_id": member_id, "forum_id": forum_id, "reason": reason})


class NotSessionParticipantError(ForbiddenError):
    default_code = "NOT_SESSION_PARTICIPANT"

    def __init__(self, member_id: str, session_id: str, **kwargs: Any) -> None:
        super().__init__(
            f"Member {member_id} is not a participant of session {session_id}", **kwargs
        )
        self.details.update({"member_id": member_id, "session_id": session_id})


class ForumFullError(ConflictError):
    default_code = "FORUM_FULL"

    def __init__(self, forum_id: str, capacity: int, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "This forum is full")
        super().__init__(f"Forum {forum_id} reached its capacity of {capacity}", "Forum", **kwargs)
        self.details.update({"forum_id": forum_id, "capacity": capacity})


class SessionClosedError(ConflictError):
    """The chat session is expired or terminated."""

    default_code = "SESSION_CLOSED"

    def __init__(self, session_id: str, status: str, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "This chat has ended")
        super().__init__(f"Session {session_id} is {status}", "PrivateChatSession", **kwargs)
        self.details.update({"session_id": session_id, "status": status})


class DidAlreadyLinkedError(ConflictError):
    """The Rank Card DID belongs to a different member."""

    default_code = "DID_ALREADY_LINKED"

    def __init__(self, did: str, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "This Rank Card is already linked to another account")
        super().__init__(f"DID {did} is already linked to another member", "MemberProfile", **kwargs)
        self.details["did"] = did


class ActiveSessionExistsError(ConflictError):
    default_code = "ACTIVE_SESSION_EXISTS"

    def __init__(self, session_id: str, **kwargs: Any) -> None:
        super().__init__(
            f"An active session already exists between these members: {session_id}",
            "PrivateChatSession",
            **kwargs,
        )
        self.details["session_id"] = session_id


class AlreadyMatchedError(ConflictError):
    """The member already has a live daily match."""

    default_code = "ALREADY_MATCHED"

    def __init__(self, member_id: str, session_id: str, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "You already have a match today")
        super().__init__(
            f"Member {member_id} already has daily match {session_id}",
            "PrivateChatSession",
            **kwargs,
        )
        self.details.update({"member_id": member_id, "session_id": session_id})


class MemberNotVerifiedError(ApplicationError):
    default_code = "MEMBER_NOT_VERIFIED"

    def __init__(self, member_id: str, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "Verify your Rank Card first")
        super().__init__(f"Member {member_id} has not verified a Rank Card", **kwargs)
        self.details["member_id"] = member_id


class ForumEntryRateLimitedError(RateLimitError):
    default_code = "FORUM_ENTRY_RATE_LIMITED"


__all__ = [
    "ActiveSessionExistsError",
    "AlreadyMatchedError",
    "DidAlreadyLinkedError",
    "ForumAccessDeniedError",
    "ForumEntryRateLimitedError",
    "ForumFullError",
    "ForumNotFoundError",
    "MemberNotFoundError",
    "MemberNotVerifiedError",
    "NotSessionParticipantError",
    "SessionClosedError",
    "SessionNotFoundError",
    "VerificationSessionNotFoundError",
]
