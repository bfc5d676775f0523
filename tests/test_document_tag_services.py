import pytest
from fastapi import HTTPException

from app.models.document import (
    AccessLevel,
    DocumentTag,
    DocumentTagAssignment,
    SharePermission,
)
from app.schemas.document import DocumentShareCreate
from app.services.document_share import document_shares
from app.services.document_tag import document_tags


def _share_with(db_session, owner, document, recipient, permission) -> None:
    payload = DocumentShareCreate(
        shared_with_person_id=recipient.id, permission=permission
    )
    document_shares.create(db_session, document.id, owner, payload)


class TestDocumentTags:
    def test_get_or_create_normalizes_name(self, db_session) -> None:
        tag = document_tags.get_or_create(db_session, "  Quarterly   Report ")
        assert tag.name == "quarterly report"
        again = document_tags.get_or_create(db_session, "QUARTERLY REPORT")
        assert again.id == tag.id
        assert db_session.query(DocumentTag).count() == 1

    def test_assign_is_idempotent(self, db_session, person, document) -> None:
        tag = document_tags.get_or_create(db_session, "tax")
        first = document_tags.assign(db_session, document.id, tag.id, person.id)
        second = document_tags.assign(db_session, document.id, tag.id, person.id)
        assert first.id == second.id
        count = (
            db_session.query(DocumentTagAssignment)
            .filter(DocumentTagAssignment.tag_id == tag.id)
            .count()
        )
        assert count == 1

    def test_assign_by_name(
        self, db_session, person, published_events, document
    ) -> None:
        tag = document_tags.assign_by_name(db_session, document.id, "Payroll", person)
        assert tag.name == "payroll"
        assert tag.is_system_generated is False
        assert tag.created_by == person.id
        assert published_events.call_args.kwargs["payload"] == {"tag": "payroll"}

        tags = document_tags.list(db_session, document.id, person, 100, 0)
        names = [t.name for t in tags]
        assert names == ["invoice", "payroll"]

    def test_assign_blank_name(self, db_session, person, document) -> None:
        with pytest.raises(HTTPException) as exc:
            document_tags.assign_by_name(db_session, document.id, "   ", person)
        assert exc.value.status_code == 400

    def test_assign_requires_visibility(
        self, db_session, other_person, document
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            document_tags.assign_by_name(db_session, document.id, "x", other_person)
        assert exc.value.status_code == 404

    def test_system_tags_shared_across_documents(
        self, db_session, make_document
    ) -> None:
        make_document(name="invoice-1.pdf")
        make_document(name="invoice-2.pdf")
        tags = db_session.query(DocumentTag).filter(DocumentTag.name == "invoice").all()
        assert len(tags) == 1
        assert db_session.query(DocumentTagAssignment).count() == 2

    def test_view_share_cannot_assign(
        self, db_session, person, other_person, document
    ) -> None:
        _share_with(db_session, person, document, other_person, SharePermission.view)
        with pytest.raises(HTTPException) as exc:
            document_tags.assign_by_name(db_session, document.id, "x", other_person)
        assert exc.value.status_code == 403

    def test_public_document_cannot_be_tagged_by_others(
        self, db_session, other_person, document
    ) -> None:
        document.access_level = AccessLevel.public
        db_session.commit()
        with pytest.raises(HTTPException) as exc:
            document_tags.assign_by_name(db_session, document.id, "x", other_person)
        assert exc.value.status_code == 403

    def test_edit_share_can_assign(
        self, db_session, person, other_person, document
    ) -> None:
        _share_with(db_session, person, document, other_person, SharePermission.edit)
        tag = document_tags.assign_by_name(
            db_session, document.id, "Reviewed", other_person
        )
        assert tag.created_by == other_person.id
