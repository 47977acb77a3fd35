"""Celery worker for outbound employee notifications."""

from celery import Celery

from core.config import config

celery_app = Celery(
    "onboarding_backend",
    broker=config.REDIS_URL,
    backend=config.REDIS_URL,
    include=["app.tasks.email_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Emails are idempotent enough to redeliver if a worker dies mid-send
    task_acks_late=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    result_expires=24 * 60 * 60,
    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
