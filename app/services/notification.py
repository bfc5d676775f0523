from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.models.person import Person
from app.services.common import apply_pagination, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


class Notifications(ListResponseMixin):
    @staticmethod
    def create(
        db: Session,
        person_id: uuid.UUID,
        title: str,
        body: str,
        event_type: str,
        entity_type: str,
        entity_id: str | int,
        metadata: dict | None = None,
        unique: bool = False,
    ) -> Notification | None:
        """Add an in-app notification to the session; the caller commits.

        With ``unique`` set, returns None instead of adding a second active
        notification for the same person, event type and entity.
        """
        if unique:
            existing = db.scalars(
                select(Notification.id)
                .where(Notification.person_id == person_id)
                .where(Notification.event_type == event_type)
                .where(Notification.entity_id == str(entity_id))
                .where(Notification.is_active.is_(True))
                .limit(1)
            ).first()
            if existing:
                return None
        notification = Notification(
            person_id=person_id,
            title=title,
            body=body,
            event_type=event_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            metadata_=metadata,
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def get(db: Session, notification_id: str, person: Person) -> Notification:
        notification = db.get(Notification, coerce_uuid(notification_id))
        if not notification or notification.person_id != person.id:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    @staticmethod
    def list(
        db: Session,
        person: Person,
        is_read: bool | None,
        limit: int,
        offset: int,
    ) -> list[Notification]:  # type: ignore[override]
        stmt = (
            select(Notification)
            .where(Notification.person_id == person.id)
            .where(Notification.is_active.is_(True))
        )
        if is_read is not None:
            stmt = stmt.where(Notification.is_read == is_read)
        stmt = stmt.order_by(Notification.created_at.desc())
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def mark_read(db: Session, person: Person, notification_ids: list) -> int:
        now = datetime.now(timezone.utc)
        count = 0
        for nid in notification_ids:
            notification = db.get(Notification, coerce_uuid(nid))
            if (
                notification
                and notification.person_id == person.id
                and not notification.is_read
            ):
                notification.is_read = True
                notification.read_at = now
                count += 1
        db.commit()
        logger.info("Marked %d notifications as read", count)
        return count

    @staticmethod
    def mark_all_read(db: Session, person: Person) -> int:
        now = datetime.now(timezone.utc)
        unread = db.scalars(
            select(Notification).where(
                Notification.person_id == person.id,
                Notification.is_read.is_(False),
                Notification.is_active.is_(True),
            )
        ).all()
        for n in unread:
            n.is_read = True
            n.read_at = now
        db.commit()
        logger.info(
            "Marked all %d notifications as read for person %s",
            len(unread),
            person.id,
        )
        return len(unread)

    @staticmethod
    def unread_count(db: Session, person: Person) -> int:
        return db.scalar(
            select(func.count(Notification.id)).where(
                Notification.person_id == person.id,
                Notification.is_read.is_(False),
                Notification.is_active.is_(True),
            )
        )

    @staticmethod
    def dismiss(db: Session, notification_id: str, person: Person) -> None:
        notification = Notifications.get(db, notification_id, person)
        notification.is_active = False
        db.commit()
        logger.info("Dismissed notification %s", notification_id)


notifications = Notifications()
