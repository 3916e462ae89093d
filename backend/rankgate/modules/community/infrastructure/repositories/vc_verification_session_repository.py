"""SQLAlchemy store for Rank Card verification transactions."""

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rankgate.core.infrastructure.repository import RepositoryError
from rankgate.core.logging import get_logger
from rankgate.modules.community.domain.entities.vc_verification_session import (
    VCVerificationSession,
)
from rankgate.modules.community.domain.enums import VerificationStatus
from rankgate.modules.community.infrastructure.models.vc_verification_session import (
    VCVerificationSessionModel,
)

logger = get_logger(__name__)

Model = VCVerificationSessionModel

_FIELDS = (
    "member_id",
    "status",
    "auth_uri",
    "qr_code_url",
    "extracted_did",
    "extracted_rank",
    "error",
    "created_at",
    "updated_at",
    "expires_at",
    "completed_at",
)


class SQLVCVerificationSessionRepository:
    """
    Verification transactions are plain records without versioning: only
    the member who started one polls it.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, vc_session: VCVerificationSession) -> None:
        self._session.add(self._to_model(vc_session))
        await self._flush("add")

    async def update(self, vc_session: VCVerificationSession) -> None:
        model = await self._session.get(Model, vc_session.transaction_id)
        if model is None:
            raise RepositoryError(
                f"VC verification session {vc_session.transaction_id} does not exist"
            )
        for name in _FIELDS:
            setattr(model, name, getattr(vc_session, name))
        await self._flush("update")

    async def get(self, transaction_id: str) -> VCVerificationSession | None:
        result = await self._execute(
            select(Model)
            .where(Model.transaction_id == transaction_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_pending_for_member(self, member_id: str) -> VCVerificationSession | None:
        result = await self._execute(
            select(Model)
            .where(
                Model.member_id == member_id,
                Model.status == VerificationStatus.PENDING,
            )
            .order_by(Model.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def delete_expired(self, now: int) -> int:
        result = await self._execute(
            delete(Model)
            .where(
                Model.status.in_([VerificationStatus.PENDING, VerificationStatus.EXPIRED]),
                Model.expires_at < now,
            )
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            logger.debug("Deleted stale VC verification sessions", count=removed)
        return removed

    async def _execute(self, stmt):
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"VC verification session query failed: {e}", cause=e
            ) from e

    async def _flush(self, operation: str) -> None:
        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to {operation} VC verification session: {e}", cause=e
            ) from e

    @staticmethod
    def _to_model(vc_session: VCVerificationSession) -> VCVerificationSessionModel:
        return Model(
            transaction_id=vc_session.transaction_id,
            **{name: getattr(vc_session, name) for name in _FIELDS},
        )

    @staticmethod
    def _to_domain(model: VCVerificationSessionModel) -> VCVerificationSession:
        return VCVerificationSession(
            transaction_id=model.transaction_id,
            **{name: getattr(model, name) for name in _FIELDS},
        )
