"""Member profile database model."""

from sqlalchemy import BigInteger, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.modules.community.domain.enums import MemberStatus, Rank


class MemberProfileModel(Base):
    """SQLAlchemy model for the MemberProfile aggregate.

    ``gender`` and ``interests`` hold ciphertext.
    """

    __tablename__ = "member_profiles"
    __table_args__ = (
        UniqueConstraint("oidc_subject_id", name="uq_member_profiles_oidc_subject_id"),
        UniqueConstraint("linked_vc_did", name="uq_member_profiles_linked_vc_did"),
        Index("idx_member_profiles_status", "status"),
        Index("idx_member_profiles_derived_rank", "derived_rank"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    oidc_subject_id: Mapped[str] = mapped_column(String(255), nullable=False)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[MemberStatus] = mapped_column(
        SQLEnum(MemberStatus, native_enum=False, length=20), nullable=False
    )
    gender: Mapped[str | None] = mapped_column(Text, nullable=True)
    interests: Mapped[str | None] = mapped_column(Text, nullable=True)
    linked_vc_did: Mapped[str | None] = mapped_column(String(255), nullable=True)
    derived_rank: Mapped[Rank | None] = mapped_column(
        SQLEnum(Rank, native_enum=False, length=32), nullable=True
    )

    # Optimistic locking
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Epoch milliseconds
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
