import logging

from sqlalchemy.orm import Session

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.notifications.dispatch_notifications", ignore_result=True
)
def dispatch_notifications(
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    document_id: str | None = None,
    payload: dict | None = None,
) -> None:
    """Create in-app notifications for document events.

    Share recipients hear about new shares; document owners hear about
    comments left by someone else.
    """
    if not document_id:
        return

    from app.db import SessionLocal

    db = SessionLocal()
    try:
        _dispatch(db, event_type, entity_id, actor_id, int(document_id))
    except Exception as e:
        logger.exception("Failed to dispatch notifications for %s: %s", event_type, e)
    finally:
        db.close()


def _dispatch(
    db: Session,
    event_type: str,
    entity_id: str,
    actor_id: str | None,
    document_id: int,
) -> None:
    from app.models.document import Document, DocumentComment, DocumentShare
    from app.services.notification import notifications

    document = db.get(Document, document_id)
    if not document:
        return

    if event_type == "document.shared":
        share = db.get(DocumentShare, int(entity_id))
        if not share or share.shared_with_person_id is None:
            return
        recipient_id = share.shared_with_person_id
        title = "A document was shared with you"
        body = (
            f"{document.original_file_name} is available with "
            f"{share.permission.value} access."
        )
    elif event_type == "comment.created":
        comment = db.get(DocumentComment, int(entity_id))
        if not comment or comment.author_id == document.owner_id:
            return
        recipient_id = document.owner_id
        title = "New comment on your document"
        body = (
            f"{comment.author.display_name} commented on "
            f"{document.original_file_name}: {comment.body[:200]}"
        )
    else:
        return

    if actor_id and str(recipient_id) == str(actor_id):
        return

    notifications.create(
        db,
        person_id=recipient_id,
        title=title,
        body=body,
        event_type=event_type,
        entity_type="document",
        entity_id=document.id,
        metadata={"source_entity_id": entity_id},
    )
    db.commit()
    logger.info(
        "Dispatched notifications for event %s on document %s", event_type, document_id
    )
