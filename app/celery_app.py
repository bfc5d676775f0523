from celery import Celery
from celery.schedules import crontab

from app.config import settings

celery_app = Celery(
    "parafort_docs",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.tasks.events",
        "app.tasks.notifications",
        "app.tasks.compliance",
    ],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_always_eager=settings.celery_task_always_eager,
    timezone="UTC",
)

celery_app.conf.beat_schedule = {
    "compliance-reminders-daily": {
        "task": "app.tasks.compliance.send_compliance_reminders",
        "schedule": crontab(hour=9, minute=0),
    },
    "compliance-new-businesses-weekly": {
        "task": "app.tasks.compliance.generate_events_for_new_businesses",
        "schedule": crontab(hour=10, minute=0, day_of_week=0),
    },
}
