from celery import Celery
from cling.core.config import settings


celery_app = Celery(
    "cling",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND or None,
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    include=["cling.reminders.tasks"],
)

# Celery Beat schedule for periodic reconciliation
celery_app.conf.beat_schedule = {
    "reconcile-overdue": {
        "task": "reminders.reconcile_overdue",
        "schedule": settings.RECONCILE_INTERVAL_SECONDS,
    },
}
