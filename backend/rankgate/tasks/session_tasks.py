"""Private chat session maintenance tasks."""

import asyncio
from collections.abc import Callable
from typing import Any

from celery import Task

from rankgate.bootstrap.community_bootstrap import expiry_policies
from rankgate.core.config import get_settings
from rankgate.core.database import create_engine, create_session_factory
from rankgate.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    is_configured,
    log_context,
)
from rankgate.modules.community.domain.services.session_expiry_service import (
    SessionCleanupResult,
    SessionExpiryService,
)
from rankgate.modules.community.infrastructure.security.field_encryption import (
    FieldEncryptionService,
)
from rankgate.modules.community.infrastructure.unit_of_work import (
    UnitOfWorkFactory,
    community_uow_factory,
)
from rankgate.tasks import celery_app

logger = get_logger(__name__)


class SessionTask(Task):
    """Base class for session maintenance tasks."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            "Session task failed",
            task=self.name,
            task_id=task_id,
            error=str(exc),
        )


async def run_session_cleanup(
    uow_factory: UnitOfWorkFactory | None = None,
    clock: Callable[[], int] | None = None,
) -> SessionCleanupResult:
    """
    Expire overdue chat sessions and purge stale verification transactions
    and lapsed match queue slots.

    Args:
        uow_factory: Unit of work factory; built from settings when omitted
        clock: Epoch-millisecond clock override

    Returns:
        SessionCleanupResult: Counts and collected per-session errors
    """
    settings = get_settings()
    engine = None
    if uow_factory is None:
        engine = create_engine(settings.database)
        uow_factory = community_uow_factory(
            create_session_factory(engine), FieldEncryptionService.from_settings(settings)
        )

    service_kwargs: dict[str, Any] = {
        "policies": expiry_policies(settings.session_policy),
        "grace_period_ms": settings.session_policy.grace_period_ms,
    }
    if clock is not None:
        service_kwargs["clock"] = clock

    try:
        async with uow_factory() as uow:
            service = SessionExpiryService(
                uow.chat_sessions,
                uow.vc_sessions,
                matching_queue_repository=uow.matching_queue,
                **service_kwargs,
            )
            result = await service.cleanup_expired_sessions()

        logger.info(
            "Session cleanup finished",
            chat_sessions_processed=result.chat_sessions_processed,
            chat_sessions_cleaned=result.chat_sessions_cleaned,
            vc_sessions_cleaned=result.vc_sessions_cleaned,
            match_queue_cleaned=result.match_queue_cleaned,
            errors=len(result.errors),
        )
        for error in result.errors:
            logger.error(
                "Session cleanup error",
                session_id=error.session_id,
                error=error.message,
            )

        async with uow_factory() as uow:
            service = SessionExpiryService(uow.chat_sessions, **service_kwargs)
            stats = await service.get_session_stats()
        logger.info("Session stats", **stats.to_dict())
    finally:
        if engine is not None:
            await engine.dispose()

    return result


@celery_app.task(
    bind=True,
    base=SessionTask,
    name="rankgate.tasks.session_tasks.cleanup_expired_sessions",
)
def cleanup_expired_sessions(self) -> dict[str, Any]:
    """Periodic sweep of expired private chat sessions."""
    if not is_configured():
        configure_logging()
    log_context(task=self.name, task_id=self.request.id)
    try:
        result = asyncio.run(run_session_cleanup())
    finally:
        clear_context()
    return result.to_dict()
