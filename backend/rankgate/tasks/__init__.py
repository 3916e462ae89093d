"""Celery configuration and initialization."""

from celery import Celery

from rankgate.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "rankgate",
    include=["rankgate.tasks.session_tasks"],
)

celery_app.conf.update(settings.get_celery_config())

celery_app.conf.task_routes = {
    "rankgate.tasks.session_tasks.*": {"queue": "sessions"},
}

celery_app.conf.beat_schedule = {
    "cleanup-expired-sessions": {
        "task": "rankgate.tasks.session_tasks.cleanup_expired_sessions",
        "schedule": float(settings.celery.session_cleanup_interval_seconds),
    },
}

__all__ = ["celery_app"]
