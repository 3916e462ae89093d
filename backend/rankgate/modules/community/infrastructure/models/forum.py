"""Forum database model."""

from sqlalchemy import BigInteger, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.modules.community.domain.enums import ForumStatus, Rank


class ForumModel(Base):
    """SQLAlchemy model for the Forum aggregate."""

    __tablename__ = "forums"
    __table_args__ = (
        UniqueConstraint("tlk_channel_id", name="uq_forums_tlk_channel_id"),
        Index("idx_forums_required_rank", "required_rank"),
        Index("idx_forums_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    required_rank: Mapped[Rank] = mapped_column(
        SQLEnum(Rank, native_enum=False, length=32), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tlk_channel_id: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    creator_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[ForumStatus] = mapped_column(
        SQLEnum(ForumStatus, native_enum=False, length=20), nullable=False
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
