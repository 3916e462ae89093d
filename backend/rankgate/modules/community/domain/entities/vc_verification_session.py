"""Tracking record for one Rank Card verification round trip."""

from dataclasses import dataclass, field

from rankgate.core.domain.base import utc_now_ms
from rankgate.modules.community.domain.enums import Rank, VerificationStatus
from rankgate.modules.community.domain.errors import (
    InvalidArgumentError,
    VerificationClosedError,
)
from rankgate.modules.community.domain.validation import require_text


@dataclass
class VCVerificationSession:
    """
    Pending or finished verification transaction for a member.

    Rows are short-lived: pending rows past ``expires_at`` are removed by the
    background cleanup.
    """

    transaction_id: str
    member_id: str
    expires_at: int
    status: VerificationStatus = VerificationStatus.PENDING
    auth_uri: str | None = None
    qr_code_url: str | None = None
    extracted_did: str | None = None
    extracted_rank: Rank | None = None
    error: str | None = None
    created_at: int = field(default_factory=utc_now_ms)
    updated_at: int | None = None
    completed_at: int | None = None

    @classmethod
    def start(
        cls,
        transaction_id: str,
        member_id: str,
        ttl_ms: int,
        auth_uri: str | None = None,
        qr_code_url: str | None = None,
        now: int | None = None,
    ) -> "VCVerificationSession":
        require_text(transaction_id, "transaction_id")
        require_text(member_id, "member_id")
        if ttl_ms <= 0:
            raise InvalidArgumentError("ttl_ms", "must be positive", ttl_ms)
        now = utc_now_ms() if now is None else now
        return cls(
            transaction_id=transaction_id,
            member_id=member_id,
            expires_at=now + ttl_ms,
            auth_uri=auth_uri,
            qr_code_url=qr_code_url,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == VerificationStatus.PENDING

    def is_expired(self, at_time: int | None = None) -> bool:
        at_time = utc_now_ms() if at_time is None else at_time
        return at_time >= self.expires_at

    def complete(self, did: str, rank: Rank, at_time: int | None = None) -> None:
        self._ensure_pending()
        self.status = VerificationStatus.COMPLETED
        self.extracted_did = did
        self.extracted_rank = rank
        self.completed_at = utc_now_ms() if at_time is None else at_time
        self.updated_at = self.completed_at

    def fail(self, reason: str, at_time: int | None = None) -> None:
        self._ensure_pending()
        self.status = VerificationStatus.FAILED
        self.error = reason
        self.updated_at = utc_now_ms() if at_time is None else at_time

    def expire(self, at_time: int | None = None) -> None:
        self._ensure_pending()
        self.status = VerificationStatus.EXPIRED
        self.error = "Verification session expired"
        self.updated_at = utc_now_ms() if at_time is None else at_time

    def _ensure_pending(self) -> None:
        if not self.is_pending:
            raise VerificationClosedError(self.transaction_id, self.status.value)
