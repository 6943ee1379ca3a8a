from celery import Celery
from celery.schedules import crontab

from app.config import settings

# Create Celery app
celery_app = Celery(
    "renovapainel",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # a large reminder at 1 msg/min can take a while
    task_soft_time_limit=3540,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,
)

celery_app.conf.beat_schedule = {
    # Reminder times are HH:MM in the business timezone; the sweep converts.
    "send-reminders-every-minute": {
        "task": "app.tasks.send_due_reminders",
        "schedule": crontab(),
        "args": [],
    },
}
