"""VC verification session database model."""

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.modules.community.domain.enums import Rank, VerificationStatus


class VCVerificationSessionModel(Base):
    __tablename__ = "vc_verification_sessions"
    __table_args__ = (
        Index("idx_vc_verification_sessions_member", "member_id", "status"),
        Index("idx_vc_verification_sessions_expires", "expires_at"),
    )

    transaction_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    member_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[VerificationStatus] = mapped_column(
        SQLEnum(
            VerificationStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    auth_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    qr_code_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    extracted_did: Mapped[str | None] = mapped_column(String(255), nullable=True)
    extracted_rank: Mapped[Rank | None] = mapped_column(
        SQLEnum(Rank, native_enum=False, length=32), nullable=True
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    completed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
