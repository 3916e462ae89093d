"""Community domain errors.

Each error is raised before any state is mutated, so the aggregate that
raised it is left exactly as it was.
"""

from typing import Any

from rankgate.core.errors import DomainError


class CommunityError(DomainError):
    """Base error for the community domain."""

    default_code = "COMMUNITY_ERROR"


class InvalidArgumentError(CommunityError):
    """A value is empty, malformed or out of range."""

    default_code = "INVALID_ARGUMENT"

    def __init__(self, field: str, reason: str, value: Any = None, **kwargs: Any):
        """Initialize invalid argument error.

        Args:
            field: Name of the offending argument
            reason: What is wrong with it
            value: Offending value, echoed in details when given
            **kwargs: Additional error context
        """
        super().__init__(
            message=f"Invalid {field}: {reason}",
            recovery_hint=f"Provide a valid {field}",
            **kwargs,
        )
        self.field = field
        self.reason = reason
        self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class InvalidRankError(InvalidArgumentError):
    """A value is not one of the five recognised ranks."""

    default_code = "INVALID_RANK"

    def __init__(self, value: Any, field: str = "rank", **kwargs: Any):
        super().__init__(field, f"{value!r} is not a recognised rank", value=value, **kwargs)
        self.value = value


class AlreadyVerifiedError(CommunityError):
    default_code = "ALREADY_VERIFIED"

    def __init__(self, member_id: str, **kwargs: Any):
        super().__init__(
            message=f"Member {member_id} is already verified",
            user_message="Your Rank Card has already been verified",
            **kwargs,
        )
        self.member_id = member_id
        self.details["member_id"] = member_id


class AlreadyArchivedError(CommunityError):
    default_code = "ALREADY_ARCHIVED"

    def __init__(self, forum_id: str, **kwargs: Any):
        super().__init__(message=f"Forum {forum_id} is already archived", **kwargs)
        self.forum_id = forum_id
        self.details["forum_id"] = forum_id


class AlreadyTerminalError(CommunityError):
    """A private chat session already reached EXPIRED or TERMINATED."""

    default_code = "ALREADY_TERMINAL"

    def __init__(self, session_id: str, status: str, **kwargs: Any):
        super().__init__(
            message=f"Session {session_id} is already {status.lower()}",
            user_message="This chat session has already ended",
            **kwargs,
        )
        self.session_id = session_id
        self.status = status
        self.details.update({"session_id": session_id, "status": status})


class ArchivedForumError(CommunityError):
    default_code = "ARCHIVED_FORUM"

    def __init__(self, forum_id: str, **kwargs: Any):
        super().__init__(
            message=f"Cannot modify archived forum {forum_id}",
            user_message="This forum has been archived",
            **kwargs,
        )
        self.forum_id = forum_id
        self.details["forum_id"] = forum_id


class NegativeCountError(CommunityError):
    default_code = "NEGATIVE_COUNT"

    def __init__(self, forum_id: str, **kwargs: Any):
        super().__init__(
            message=f"Member count of forum {forum_id} cannot be negative", **kwargs
        )
        self.forum_id = forum_id
        self.details["forum_id"] = forum_id


class VerificationClosedError(CommunityError):
    """A Rank Card verification session is no longer pending."""

    default_code = "VERIFICATION_CLOSED"

    def __init__(self, transaction_id: str, status: str, **kwargs: Any):
        super().__init__(
            message=f"Verification {transaction_id} is already {status}", **kwargs
        )
        self.transaction_id = transaction_id
        self.status = status
        self.details.update({"transaction_id": transaction_id, "status": status})


__all__ = [
    "AlreadyArchivedError",
    "AlreadyTerminalError",
    "AlreadyVerifiedError",
    "ArchivedForumError",
    "CommunityError",
    "InvalidArgumentError",
    "InvalidRankError",
    "NegativeCountError",
    "VerificationClosedError",
]
