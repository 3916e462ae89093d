"""Community domain events."""

from typing import Any

from rankgate.core.errors import ValidationError
from rankgate.core.events.types import DomainEvent


class CommunityEvent(DomainEvent):
    """Base for events raised by community aggregates."""

    def _require(self, *fields: str) -> None:
        for name in fields:
            if not getattr(self, name, None):
                raise ValidationError(f"{name} is required", field=name)


class MemberVerified(CommunityEvent):
    """A member linked a Rank Card and received a derived rank."""

    def __init__(self, member_id: str, did: str, rank: str, verified_at: int, **kwargs: Any):
        self.member_id = member_id
        self.did = did
        self.rank = rank
        self.verified_at = verified_at
        super().__init__(**kwargs)

    def validate_payload(self) -> None:
        self._require("member_id", "did", "rank")


class MemberProfileUpdated(CommunityEvent):
    def __init__(self, member_id: str, oidc_subject_id: str, updated_at: int, **kwargs: Any):
        self.member_id = member_id
        self.oidc_subject_id = oidc_subject_id
        self.updated_at = updated_at
        super().__init__(**kwargs)

    def validate_payload(self) -> None:
        self._require("member_id", "oidc_subject_id")


class ForumArchived(CommunityEvent):
    def __init__(self, forum_id: str, archived_at: int, **kwargs: Any):
        self.forum_id = forum_id
        self.archived_at = archived_at
        super().__init__(**kwargs)

    def validate_payload(self) -> None:
        self._require("forum_id")


class SessionTerminated(CommunityEvent):
    def __init__(self, session_id: str, terminated_at: int, **kwargs: Any):
        self.session_id = session_id
        self.terminated_at = terminated_at
        super().__init__(**kwargs)

    def validate_payload(self) -> None:
        self._require("session_id")


class SessionExpired(CommunityEvent):
    def __init__(self, session_id: str, expired_at: int, **kwargs: Any):
        self.session_id = session_id
        self.expired_at = expired_at
        super().__init__(**kwargs)

    def validate_payload(self) -> None:
        self._require("session_id")


__all__ = [
    "CommunityEvent",
    "ForumArchived",
    "MemberProfileUpdated",
    "MemberVerified",
    "SessionExpired",
    "SessionTerminated",
]
