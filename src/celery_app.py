"""Celery application configuration."""

from celery import Celery

from src.config import get_settings

settings = get_settings()

app = Celery(
    "kanban",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["src.tasks.attachment_cleanup"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=120,  # file deletion only; anything longer is stuck I/O
    task_soft_time_limit=90,
)
