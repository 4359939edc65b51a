from celery import Celery
from celery.schedules import crontab
from reward_points.core.config import settings

# Create Celery app
celery_app = Celery(
    "reward_points",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "reward_points.workers.celery_tasks.directory_tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
)

celery_app.conf.beat_schedule = {
    "sync-directory-hierarchy-nightly": {
        "task": "reward_points.workers.celery_tasks.directory_tasks.sync_directory_hierarchy",
        "schedule": crontab(hour=2, minute=0),
    },
}
