import enum
import logging
import uuid

logger = logging.getLogger(__name__)


class EventType(enum.Enum):
    document_created = "document.created"
    document_archived = "document.archived"
    document_deleted = "document.deleted"

    version_created = "version.created"

    document_shared = "document.shared"
    share_revoked = "share.revoked"

    comment_created = "comment.created"

    tag_assigned = "tag.assigned"

    compliance_generated = "compliance.generated"
    compliance_completed = "compliance.completed"
    compliance_dismissed = "compliance.dismissed"


def publish_event(
    event_type: EventType,
    entity_type: str,
    entity_id: str | int | uuid.UUID,
    actor_id: str | uuid.UUID | None = None,
    document_id: str | int | None = None,
    payload: dict | None = None,
) -> None:
    """Fire-and-forget event publishing.

    Queues a Celery task for fan-out to in-app notifications.
    Never raises; failures are logged.
    """
    try:
        from app.tasks.events import process_event

        process_event.delay(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=str(actor_id) if actor_id else None,
            document_id=str(document_id) if document_id else None,
            payload=payload or {},
        )
        logger.debug(
            "Published event %s for %s/%s", event_type.value, entity_type, entity_id
        )
    except Exception as e:
        logger.exception("Failed to publish event %s: %s", event_type.value, e)
