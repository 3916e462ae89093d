"""Tests for the error hierarchy."""

from rankgate.core.errors import ConflictError, ForbiddenError, NotFoundError, RateLimitError
from rankgate.core.infrastructure.repository import (
    OptimisticLockError,
    RepositoryError,
    UniqueConstraintError,
)
from rankgate.modules.community.application.errors import (
    ForumEntryRateLimitedError,
    ForumFullError,
    MemberNotFoundError,
    NotSessionParticipantError,
)
from rankgate.modules.community.domain.errors import (
    AlreadyTerminalError,
    InvalidRankError,
)


class TestRepositoryErrors:
    def test_lock_conflict_is_retryable_conflict(self):
        error = OptimisticLockError("Forum", "f1", expected_version=2, actual_version=3)

        assert isinstance(error, ConflictError)
        assert error.retryable
        assert error.status_code == 409
        assert error.details["expected_version"] == 2
        assert error.details["actual_version"] == 3
        assert "expected version 2, found 3" in error.message

    def test_lock_conflict_on_vanished_row(self):
        error = OptimisticLockError("Forum", "f1", expected_version=2)

        assert error.actual_version is None
        assert "disappeared" in error.message

    def test_unique_violation_is_not_retryable(self):
        error = UniqueConstraintError("Forum", "tlk_channel_id", "forum-1")

        assert isinstance(error, ConflictError)
        assert not error.retryable
        assert error.details["field"] == "tlk_channel_id"

    def test_repository_error_is_infrastructure_failure(self):
        error = RepositoryError("boom")

        assert error.status_code == 500
        assert error.to_dict()["error"] == "REPOSITORY_ERROR"


class TestErrorSerialization:
    def test_domain_error_to_dict(self):
        error = InvalidRankError("GOLD")

        data = error.to_dict()

        assert data["error"] == "INVALID_RANK"
        assert data["details"]["field"] == "rank"
        assert data["details"]["value"] == "GOLD"
        assert str(error).startswith("INVALID_RANK: ")

    def test_terminal_error_details(self):
        error = AlreadyTerminalError("s1", "EXPIRED")

        assert error.details == {"session_id": "s1", "status": "EXPIRED"}
        assert error.user_message == "This chat session has already ended"


class TestApplicationErrors:
    def test_categories(self):
        assert isinstance(MemberNotFoundError("m1"), NotFoundError)
        assert isinstance(NotSessionParticipantError("m1", "s1"), ForbiddenError)
        assert isinstance(ForumFullError("f1", 10), ConflictError)
        assert isinstance(ForumEntryRateLimitedError(10, 60, retry_after=5), RateLimitError)

    def test_rate_limit_details(self):
        error = ForumEntryRateLimitedError(10, 60, retry_after=5)

        assert error.status_code == 429
        assert error.code == "FORUM_ENTRY_RATE_LIMITED"
        assert error.details["retry_after"] == 5
