"""Private chat session database model."""

from sqlalchemy import BigInteger, Index, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankgate.core.database import Base
from rankgate.modules.community.domain.enums import SessionStatus, SessionType


class PrivateChatSessionModel(Base):
    """SQLAlchemy model for the PrivateChatSession aggregate."""

    __tablename__ = "private_chat_sessions"
    __table_args__ = (
        UniqueConstraint("tlk_channel_id", name="uq_private_chat_sessions_tlk_channel_id"),
        Index("idx_private_chat_sessions_member_a", "member_a_id"),
        Index("idx_private_chat_sessions_member_b", "member_b_id"),
        Index("idx_private_chat_sessions_status_expires", "status", "expires_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    member_a_id: Mapped[str] = mapped_column(String(36), nullable=False)
    member_b_id: Mapped[str] = mapped_column(String(36), nullable=False)
    tlk_channel_id: Mapped[str] = mapped_column(String(100), nullable=False)
    session_type: Mapped[SessionType] = mapped_column(
        SQLEnum(SessionType, native_enum=False, length=20), nullable=False
    )
    status: Mapped[SessionStatus] = mapped_column(
        SQLEnum(SessionStatus, native_enum=False, length=20), nullable=False
    )
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
