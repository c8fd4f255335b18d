from celery import Celery

from app.core.config import settings

# Create Celery instance
celery_app = Celery(
    "coin_wallet",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.credits"]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
    task_acks_late=settings.CELERY_TASK_ACKS_LATE,  # a credit is only acked once it is written
    task_reject_on_worker_lost=settings.CELERY_TASK_REJECT_ON_WORKER_LOST,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    worker_prefetch_multiplier=settings.CELERY_WORKER_PREFETCH_MULTIPLIER,
    broker_connection_retry_on_startup=True,
)

# Configure task queues
celery_app.conf.task_routes = {
    "app.tasks.credits.*": {"queue": settings.CREDIT_QUEUE},
}
