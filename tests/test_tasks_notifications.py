import pytest

from app.models.document import AccessLevel
from app.models.notification import Notification
from app.schemas.document import DocumentCommentCreate, DocumentShareCreate
from app.services.document_comment import document_comments
from app.services.document_share import document_shares
from app.tasks.notifications import _dispatch


@pytest.fixture()
def public_document(make_document):
    return make_document(access_level=AccessLevel.public)


def _notifications_for(db_session, person):
    return (
        db_session.query(Notification)
        .filter(Notification.person_id == person.id)
        .all()
    )


class TestDispatchNotifications:
    def test_share_notifies_recipient(
        self, db_session, person, other_person, document
    ) -> None:
        share = document_shares.create(
            db_session,
            document.id,
            person,
            DocumentShareCreate(shared_with_person_id=other_person.id),
        )["share"]

        _dispatch(
            db_session,
            event_type="document.shared",
            entity_id=str(share.id),
            actor_id=str(person.id),
            document_id=document.id,
        )

        notifs = _notifications_for(db_session, other_person)
        assert len(notifs) == 1
        assert notifs[0].title == "A document was shared with you"
        assert notifs[0].entity_id == str(document.id)
        assert "view access" in notifs[0].body

    def test_email_share_notifies_nobody(self, db_session, person, document) -> None:
        share = document_shares.create(
            db_session,
            document.id,
            person,
            DocumentShareCreate(shared_with_email="cpa@example.com"),
        )["share"]

        _dispatch(
            db_session,
            event_type="document.shared",
            entity_id=str(share.id),
            actor_id=str(person.id),
            document_id=document.id,
        )

        assert db_session.query(Notification).count() == 0

    def test_comment_notifies_owner(
        self, db_session, person, other_person, public_document
    ) -> None:
        comment = document_comments.create(
            db_session,
            public_document.id,
            other_person,
            DocumentCommentCreate(body="Please re-sign page 2"),
        )

        _dispatch(
            db_session,
            event_type="comment.created",
            entity_id=str(comment.id),
            actor_id=str(other_person.id),
            document_id=public_document.id,
        )

        notifs = _notifications_for(db_session, person)
        assert len(notifs) == 1
        assert notifs[0].title == "New comment on your document"
        assert notifs[0].body.endswith("Please re-sign page 2")

    def test_owner_comment_notifies_nobody(
        self, db_session, person, document
    ) -> None:
        comment = document_comments.create(
            db_session, document.id, person, DocumentCommentCreate(body="Note")
        )

        _dispatch(
            db_session,
            event_type="comment.created",
            entity_id=str(comment.id),
            actor_id=str(person.id),
            document_id=document.id,
        )

        assert db_session.query(Notification).count() == 0

    def test_other_events_ignored(self, db_session, person, document) -> None:
        _dispatch(
            db_session,
            event_type="document.archived",
            entity_id=str(document.id),
            actor_id=None,
            document_id=document.id,
        )
        assert db_session.query(Notification).count() == 0

    def test_missing_document(self, db_session) -> None:
        _dispatch(
            db_session,
            event_type="document.shared",
            entity_id="1",
            actor_id=None,
            document_id=999999,
        )
        assert db_session.query(Notification).count() == 0

    def test_task_without_document_is_noop(self) -> None:
        from app.tasks.notifications import dispatch_notifications

        dispatch_notifications(
            event_type="compliance.generated",
            entity_type="business_entity",
            entity_id="1",
        )
