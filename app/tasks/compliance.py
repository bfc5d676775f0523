import logging

from app.celery_app import celery_app
from app.config import settings

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.compliance.send_compliance_reminders")
def send_compliance_reminders() -> int:
    """Daily sweep creating reminders for pending events inside the window."""
    from app.db import SessionLocal
    from app.services.compliance import compliance_events

    db = SessionLocal()
    try:
        created = compliance_events.send_reminders(
            db, window_days=settings.compliance_reminder_window_days
        )
        logger.info("Compliance reminder sweep created %d notifications", created)
        return created
    except Exception as e:
        logger.exception("Compliance reminder sweep failed: %s", e)
        raise
    finally:
        db.close()


@celery_app.task(name="app.tasks.compliance.generate_events_for_new_businesses")
def generate_events_for_new_businesses() -> int:
    from app.db import SessionLocal
    from app.services.compliance import compliance_events

    db = SessionLocal()
    try:
        return compliance_events.generate_for_new_businesses(db)
    except Exception as e:
        logger.exception("New business compliance generation failed: %s", e)
        raise
    finally:
        db.close()
