"""Rank Card verifier port.

The wire protocol of the external verifier is not modelled here; adapters
translate it into ``VerificationResult``.
"""

from dataclasses import dataclass
from typing import Protocol

from rankgate.modules.community.domain.enums import Rank, VerificationStatus


@dataclass(frozen=True)
class RankCardClaim:
    """Claims extracted from a verified Rank Card credential."""

    did: str
    rank: Rank | str
    issued_at: int | None = None
    expires_at: int | None = None
    issuer: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    """State of a verification transaction as reported by the verifier."""

    transaction_id: str
    status: VerificationStatus
    auth_uri: str | None = None
    qr_code_url: str | None = None
    claim: RankCardClaim | None = None
    error_message: str | None = None


class IRankVerificationService(Protocol):
    async def initiate_verification(self, member_id: str) -> VerificationResult:
        """Start a transaction; the result is PENDING with an auth URI."""
        ...

    async def check_verification_status(self, transaction_id: str) -> VerificationResult:
        """Poll a transaction; COMPLETED results carry a claim."""
        ...
