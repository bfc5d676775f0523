import uuid

import pytest
from fastapi import HTTPException

from app.models.notification import Notification
from app.services.notification import notifications


@pytest.fixture()
def notification(db_session, person):
    n = Notification(
        person_id=person.id,
        title="Test Notification",
        body="Something happened",
        event_type="document.shared",
        entity_type="document",
        entity_id="1",
    )
    db_session.add(n)
    db_session.commit()
    db_session.refresh(n)
    return n


@pytest.fixture()
def notifications_batch(db_session, person):
    items = []
    for i in range(5):
        n = Notification(
            person_id=person.id,
            title=f"Notification {i}",
            body=f"Body {i}",
            event_type="comment.created",
            entity_type="document",
            entity_id=str(i),
        )
        db_session.add(n)
        items.append(n)
    db_session.commit()
    for n in items:
        db_session.refresh(n)
    return items


class TestNotificationsService:
    def test_create_flushes_without_commit(self, db_session, person) -> None:
        n = notifications.create(
            db_session,
            person_id=person.id,
            title="Reminder",
            body="Due soon",
            event_type="compliance.reminder.low",
            entity_type="compliance_event",
            entity_id=5,
            metadata={"days_until_due": 20},
        )
        assert n.id is not None
        assert n.entity_id == "5"
        db_session.rollback()
        assert db_session.query(Notification).count() == 0

    def test_create_unique_skips_duplicates(self, db_session, person) -> None:
        kwargs = dict(
            person_id=person.id,
            title="Reminder",
            body="Due soon",
            event_type="compliance.reminder.low",
            entity_type="compliance_event",
            entity_id=5,
            unique=True,
        )
        assert notifications.create(db_session, **kwargs) is not None
        assert notifications.create(db_session, **kwargs) is None
        assert db_session.query(Notification).count() == 1

    def test_get(self, db_session, person, notification) -> None:
        result = notifications.get(db_session, str(notification.id), person)
        assert result.id == notification.id
        assert result.title == "Test Notification"

    def test_get_not_found(self, db_session, person) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.get(db_session, str(uuid.uuid4()), person)
        assert exc.value.status_code == 404

    def test_get_other_persons_notification(
        self, db_session, other_person, notification
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.get(db_session, str(notification.id), other_person)
        assert exc.value.status_code == 404

    def test_get_invalid_id(self, db_session, person) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.get(db_session, "not-a-uuid", person)
        assert exc.value.status_code == 400

    def test_list_all(self, db_session, person, notifications_batch) -> None:
        result = notifications.list(db_session, person, None, 25, 0)
        assert len(result) == 5

    def test_list_scoped_to_person(
        self, db_session, other_person, notifications_batch
    ) -> None:
        assert notifications.list(db_session, other_person, None, 25, 0) == []

    def test_list_filter_is_read(self, db_session, person, notifications_batch):
        notifications.mark_read(db_session, person, [notifications_batch[0].id])
        unread = notifications.list(db_session, person, False, 25, 0)
        read = notifications.list(db_session, person, True, 25, 0)
        assert len(unread) == 4
        assert len(read) == 1

    def test_mark_read(self, db_session, person, notifications_batch) -> None:
        ids = [str(n.id) for n in notifications_batch[:3]]
        count = notifications.mark_read(db_session, person, ids)
        assert count == 3
        for nid in ids:
            n = db_session.get(Notification, uuid.UUID(nid))
            assert n.is_read is True
            assert n.read_at is not None

    def test_mark_read_idempotent(self, db_session, person, notifications_batch):
        ids = [str(notifications_batch[0].id)]
        notifications.mark_read(db_session, person, ids)
        assert notifications.mark_read(db_session, person, ids) == 0

    def test_mark_read_ignores_other_persons(
        self, db_session, other_person, notifications_batch
    ) -> None:
        ids = [str(n.id) for n in notifications_batch]
        assert notifications.mark_read(db_session, other_person, ids) == 0

    def test_mark_all_read(self, db_session, person, notifications_batch) -> None:
        assert notifications.mark_all_read(db_session, person) == 5
        assert notifications.unread_count(db_session, person) == 0

    def test_unread_count_after_mark_read(
        self, db_session, person, notifications_batch
    ) -> None:
        notifications.mark_read(db_session, person, [str(notifications_batch[0].id)])
        assert notifications.unread_count(db_session, person) == 4

    def test_dismiss(self, db_session, person, notification) -> None:
        notifications.dismiss(db_session, str(notification.id), person)
        n = db_session.get(Notification, notification.id)
        assert n.is_active is False
        assert notifications.list(db_session, person, None, 25, 0) == []
        assert notifications.unread_count(db_session, person) == 0

    def test_dismiss_not_found(self, db_session, person) -> None:
        with pytest.raises(HTTPException) as exc:
            notifications.dismiss(db_session, str(uuid.uuid4()), person)
        assert exc.value.status_code == 404
