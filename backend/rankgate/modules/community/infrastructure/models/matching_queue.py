"""Daily match queue database model."""

from sqlalchemy import BigInteger, Index, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.modules.community.domain.enums import Rank


class MatchingQueueModel(Base):
    __tablename__ = "matching_queue"
    __table_args__ = (
        Index("idx_matching_queue_rank_joined", "rank", "joined_at"),
        Index("idx_matching_queue_expires", "expires_at"),
    )

    member_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    rank: Mapped[Rank] = mapped_column(SQLEnum(Rank, native_enum=False, length=32), nullable=False)
    joined_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
