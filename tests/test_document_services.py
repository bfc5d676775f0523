import hashlib
import os
import uuid
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ResponseStreamingError
from fastapi import HTTPException

from app.models.document import (
    AccessLevel,
    DocumentShare,
    DocumentStatus,
    DocumentTag,
    DocumentVersion,
    IntegrityStatus,
    SharePermission,
)
from app.schemas.document import DocumentCreate, DocumentVersionCreate
from app.services.document import documents
from tests.mocks import FakeHTTPXResponse


def _write(tmp_path, name: str, content: bytes) -> str:
    path = tmp_path / f"{uuid.uuid4().hex[:8]}-{name}"
    path.write_bytes(content)
    return str(path)


class TestDocumentCreate:
    def test_create_sets_hash_and_initial_version(self, db_session, document) -> None:
        expected = hashlib.sha256(b"%PDF-1.4 test invoice").hexdigest()
        assert document.file_hash == expected
        assert document.version == 1
        assert document.is_latest_version is True
        assert document.workflow_stage == "uploaded"
        assert document.status == DocumentStatus.active
        assert document.download_count == 0

        versions = db_session.query(DocumentVersion).all()
        assert len(versions) == 1
        assert versions[0].version_number == 1
        assert versions[0].change_description == "Initial upload"
        assert versions[0].file_hash == document.file_hash

    def test_pdf_tagged_from_file_name_without_score(self, document) -> None:
        assert document.ai_tags == ["invoice"]
        assert document.ai_confidence_score is None
        assert document.extracted_text is None

    def test_pdf_tags_become_system_tags(self, db_session, person, document) -> None:
        from app.services.document_tag import document_tags

        tags = document_tags.list(db_session, document.id, person, 100, 0)
        assert [t.name for t in tags] == ["invoice"]
        assert tags[0].is_system_generated is True

    def test_image_without_analysis_endpoint_has_no_metadata(
        self, make_document
    ) -> None:
        doc = make_document(
            content=b"\x89PNG fake", name="receipt.png", mime_type="image/png"
        )
        assert doc.ai_tags == []
        assert doc.ai_confidence_score is None

    def test_classification_failure_does_not_block_upload(
        self, make_document
    ) -> None:
        from app.services.document_classifier import classifier

        with patch.object(classifier, "classify", side_effect=RuntimeError("down")):
            doc = make_document()
        assert doc.id is not None
        assert doc.ai_tags == []

    @patch("app.services.document_classifier.httpx")
    @patch("app.services.document_classifier.settings")
    def test_overlong_suggested_tag_does_not_block_upload(
        self, mock_settings, mock_httpx, db_session, make_document
    ) -> None:
        mock_settings.ai_analysis_url = "https://vision.example.com/analyze"
        mock_settings.ai_analysis_api_key = None
        mock_settings.ai_analysis_timeout_seconds = 5.0
        client = mock_httpx.Client.return_value.__enter__.return_value
        client.post.return_value = FakeHTTPXResponse(
            {"suggested_tags": ["receipt", "x" * 200], "confidence": 0.9}
        )

        doc = make_document(
            content=b"\x89PNG fake", name="scan.png", mime_type="image/png"
        )

        assert doc.id is not None
        assert doc.ai_tags == ["receipt"]
        names = [t.name for t in db_session.query(DocumentTag).all()]
        assert names == ["receipt"]

    def test_unclassified_mime_type(self, make_document) -> None:
        doc = make_document(
            content=b"a,b\n1,2\n", name="invoice.csv", mime_type="text/csv"
        )
        assert doc.ai_tags == []

    def test_create_publishes_event(self, published_events, document) -> None:
        kwargs = published_events.call_args.kwargs
        assert kwargs["event_type"] == "document.created"
        assert kwargs["document_id"] == str(document.id)

    def test_create_unreadable_file(self, db_session, person) -> None:
        payload = DocumentCreate(
            owner_id=person.id,
            file_name="missing.pdf",
            original_file_name="missing.pdf",
            storage_path="/nonexistent/missing.pdf",
            file_size=10,
            mime_type="application/pdf",
            document_type="invoice",
            service_type="bookkeeping",
            uploaded_by=person.id,
        )
        with pytest.raises(HTTPException) as exc:
            documents.create(db_session, payload)
        assert exc.value.status_code == 400

    def test_create_unknown_owner(self, db_session, person, tmp_path) -> None:
        path = _write(tmp_path, "a.pdf", b"data")
        payload = DocumentCreate(
            owner_id=uuid.uuid4(),
            file_name="a.pdf",
            original_file_name="a.pdf",
            storage_path=path,
            file_size=4,
            mime_type="application/pdf",
            document_type="invoice",
            service_type="bookkeeping",
            uploaded_by=person.id,
        )
        with pytest.raises(HTTPException) as exc:
            documents.create(db_session, payload)
        assert exc.value.status_code == 404

    def test_create_with_foreign_business(
        self, make_document, other_person, business
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            make_document(owner=other_person, business_entity_id=business.id)
        assert exc.value.status_code == 404
        assert exc.value.detail == "Business entity not found"

    def test_create_with_own_business(self, make_document, business) -> None:
        doc = make_document(business_entity_id=business.id)
        assert doc.business_entity_id == business.id


class TestDocumentGet:
    def test_get_updates_access_counters(self, db_session, person, document) -> None:
        result = documents.get(db_session, document.id, person)
        assert result.download_count == 1
        assert result.last_accessed_by == person.id
        assert result.last_accessed_at is not None

        result = documents.get(db_session, document.id, person)
        assert result.download_count == 2

    def test_get_not_found(self, db_session, person) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.get(db_session, 999999, person)
        assert exc.value.status_code == 404

    def test_private_document_hidden_from_others(
        self, db_session, other_person, document
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.get(db_session, document.id, other_person)
        assert exc.value.status_code == 404

    def test_public_document_visible_to_others(
        self, db_session, other_person, make_document
    ) -> None:
        doc = make_document(access_level=AccessLevel.public)
        assert documents.get(db_session, doc.id, other_person).id == doc.id

    def test_admin_sees_any_document(self, db_session, admin_person, document) -> None:
        assert documents.get(db_session, document.id, admin_person).id == document.id

    def test_active_share_grants_access(
        self, db_session, person, other_person, document
    ) -> None:
        db_session.add(
            DocumentShare(
                document_id=document.id,
                shared_with_person_id=other_person.id,
                permission=SharePermission.view,
                share_token=uuid.uuid4().hex,
                created_by=person.id,
            )
        )
        db_session.commit()
        assert documents.get(db_session, document.id, other_person).id == document.id

    def test_deleted_public_document_hidden_from_others(
        self, db_session, person, other_person, make_document
    ) -> None:
        doc = make_document(access_level=AccessLevel.public)
        documents.delete(db_session, doc.id, person)
        with pytest.raises(HTTPException) as exc:
            documents.get(db_session, doc.id, other_person)
        assert exc.value.status_code == 404


class TestDocumentList:
    def test_list_scoped_to_owner(
        self, db_session, person, other_person, make_document
    ) -> None:
        make_document()
        make_document(owner=other_person)
        result = documents.list(db_session, person, None, None, None, None, 50, 0)
        assert len(result) == 1
        assert result[0].owner_id == person.id

    def test_list_newest_first(self, db_session, person, make_document) -> None:
        first = make_document(name="first.pdf")
        second = make_document(name="second.pdf")
        result = documents.list(db_session, person, None, None, None, None, 50, 0)
        assert [d.id for d in result] == [second.id, first.id]

    def test_list_filters(self, db_session, person, make_document) -> None:
        make_document(service_type="bookkeeping", document_type="invoice")
        make_document(
            name="w2-2025.pdf", service_type="payroll", document_type="tax_form"
        )
        by_service = documents.list(
            db_session, person, "payroll", None, None, None, 50, 0
        )
        assert len(by_service) == 1
        by_type = documents.list(
            db_session, person, None, "invoice", None, None, 50, 0
        )
        assert len(by_type) == 1

    def test_list_search_by_file_name(self, db_session, person, make_document) -> None:
        make_document(name="invoice-march.pdf")
        make_document(name="contract.pdf")
        result = documents.list(db_session, person, None, None, None, "MARCH", 50, 0)
        assert [d.original_file_name for d in result] == ["invoice-march.pdf"]

    def test_deleted_excluded_by_default(self, db_session, person, document) -> None:
        documents.delete(db_session, document.id, person)
        result = documents.list(db_session, person, None, None, None, None, 50, 0)
        assert result == []
        deleted = documents.list(
            db_session, person, None, None, "deleted", None, 50, 0
        )
        assert [d.id for d in deleted] == [document.id]

    def test_list_invalid_status(self, db_session, person) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.list(db_session, person, None, None, "bogus", None, 50, 0)
        assert exc.value.status_code == 400

    def test_list_response_envelope(self, db_session, person, document) -> None:
        result = documents.list_response(
            db_session, person, None, None, None, None, 10, 0
        )
        assert result["count"] == 1
        assert result["limit"] == 10
        assert result["offset"] == 0


class TestDocumentLifecycle:
    def test_soft_delete(self, db_session, person, document) -> None:
        result = documents.delete(db_session, document.id, person)
        assert result.status == DocumentStatus.deleted
        assert os.path.exists(document.storage_path)

    def test_delete_requires_owner(self, db_session, other_person, document) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.delete(db_session, document.id, other_person)
        assert exc.value.status_code == 404
        assert exc.value.detail == "Document not found or access denied"

    def test_admin_cannot_delete_others_document(
        self, db_session, admin_person, document
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.delete(db_session, document.id, admin_person)
        assert exc.value.status_code == 404

    def test_archive(self, db_session, person, published_events, document) -> None:
        result = documents.archive(db_session, document.id, person)
        assert result.status == DocumentStatus.archived
        assert published_events.call_args.kwargs["event_type"] == "document.archived"

    def test_archive_deleted_rejected(self, db_session, person, document) -> None:
        documents.delete(db_session, document.id, person)
        with pytest.raises(HTTPException) as exc:
            documents.archive(db_session, document.id, person)
        assert exc.value.status_code == 400


class TestDocumentIntegrity:
    def test_valid(self, db_session, person, document) -> None:
        report = documents.verify_integrity(db_session, document.id, person)
        assert report["status"] == IntegrityStatus.valid
        assert report["current_hash"] == document.file_hash
        assert report["message"] == "Document integrity verified"

    def test_modified(self, db_session, person, document) -> None:
        with open(document.storage_path, "wb") as fh:
            fh.write(b"tampered")
        report = documents.verify_integrity(db_session, document.id, person)
        assert report["status"] == IntegrityStatus.modified
        assert report["current_hash"] == hashlib.sha256(b"tampered").hexdigest()
        assert report["original_hash"] == document.file_hash

    def test_inaccessible(self, db_session, person, document) -> None:
        os.remove(document.storage_path)
        report = documents.verify_integrity(db_session, document.id, person)
        assert report["status"] == IntegrityStatus.inaccessible
        assert report["current_hash"] is None

    @patch("app.services.document_storage.boto3")
    @patch("app.services.document_storage.settings")
    def test_object_stream_failure_is_inaccessible(
        self, mock_settings, mock_boto3, db_session, person, document
    ) -> None:
        mock_settings.s3_endpoint_url = "http://localhost:9000"
        mock_settings.s3_access_key = "test-key"
        mock_settings.s3_secret_key = "test-secret"
        mock_settings.s3_bucket_name = "parafort-documents"

        def chunks(size):
            yield b"%PDF"
            raise ResponseStreamingError(error="connection reset")

        body = MagicMock()
        body.iter_chunks.side_effect = chunks
        mock_boto3.client.return_value.get_object.return_value = {"Body": body}

        report = documents.verify_integrity(db_session, document.id, person)
        assert report["status"] == IntegrityStatus.inaccessible


class TestDocumentAnalytics:
    def test_groups_by_service_type_and_status(
        self, db_session, person, make_document
    ) -> None:
        make_document(content=b"x" * 10, name="a.pdf")
        make_document(content=b"x" * 20, name="b.pdf")
        tax_doc = make_document(content=b"x" * 5, name="c.pdf", service_type="tax")
        documents.delete(db_session, tax_doc.id, person)

        rows = documents.analytics(db_session, person)
        by_key = {(r["service_type"], r["status"]): r for r in rows}
        bookkeeping = by_key[("bookkeeping", DocumentStatus.active)]
        assert bookkeeping["total_documents"] == 2
        assert bookkeeping["total_size"] == 30
        assert bookkeeping["average_size"] == 15.0
        assert by_key[("tax", DocumentStatus.deleted)]["total_documents"] == 1

    def test_non_admin_sees_only_own(
        self, db_session, person, other_person, admin_person, make_document
    ) -> None:
        make_document()
        make_document(owner=other_person)
        own = documents.analytics(db_session, person)
        assert sum(r["total_documents"] for r in own) == 1
        everything = documents.analytics(db_session, admin_person)
        assert sum(r["total_documents"] for r in everything) == 2


class TestDocumentVersions:
    def test_new_version_scenario(self, db_session, person, make_document, tmp_path):
        doc = make_document(content=b"1" * 10240, name="invoice-march.pdf")
        new_path = _write(tmp_path, "invoice-march.pdf", b"2" * 10300)

        version = documents.create_version(
            db_session,
            doc.id,
            person,
            DocumentVersionCreate(
                file_name="invoice-march.pdf",
                storage_path=new_path,
                file_size=10300,
                mime_type="application/pdf",
                change_description="Updated totals",
            ),
        )
        assert version.version_number == 2
        assert version.is_latest_version is True
        assert version.change_description == "Updated totals"

        db_session.refresh(doc)
        assert doc.version == 2
        assert doc.file_size == 10300
        assert doc.storage_path == new_path
        assert doc.file_hash == hashlib.sha256(b"2" * 10300).hexdigest()

        versions = documents.list_versions(db_session, doc.id, person, 50, 0)
        assert [v.version_number for v in versions] == [2, 1]
        assert [v.is_latest_version for v in versions] == [True, False]

    def test_version_numbers_are_sequential(
        self, db_session, person, document, tmp_path
    ) -> None:
        for i in range(3):
            path = _write(tmp_path, "v.pdf", f"revision {i}".encode())
            documents.create_version(
                db_session,
                document.id,
                person,
                DocumentVersionCreate(
                    file_name="v.pdf",
                    storage_path=path,
                    file_size=10,
                    mime_type="application/pdf",
                ),
            )
        versions = documents.list_versions(db_session, document.id, person, 50, 0)
        assert [v.version_number for v in versions] == [4, 3, 2, 1]
        assert sum(1 for v in versions if v.is_latest_version) == 1

    def test_version_publishes_event(
        self, db_session, person, published_events, document, tmp_path
    ) -> None:
        path = _write(tmp_path, "v.pdf", b"next")
        documents.create_version(
            db_session,
            document.id,
            person,
            DocumentVersionCreate(
                file_name="v.pdf", storage_path=path, file_size=4, mime_type="a/b"
            ),
        )
        kwargs = published_events.call_args.kwargs
        assert kwargs["event_type"] == "version.created"
        assert kwargs["payload"] == {"version_number": 2}

    def test_version_requires_owner(
        self, db_session, other_person, document, tmp_path
    ) -> None:
        path = _write(tmp_path, "v.pdf", b"next")
        with pytest.raises(HTTPException) as exc:
            documents.create_version(
                db_session,
                document.id,
                other_person,
                DocumentVersionCreate(
                    file_name="v.pdf", storage_path=path, file_size=4, mime_type="a/b"
                ),
            )
        assert exc.value.status_code == 404

    def test_version_on_deleted_document(
        self, db_session, person, document, tmp_path
    ) -> None:
        documents.delete(db_session, document.id, person)
        path = _write(tmp_path, "v.pdf", b"next")
        with pytest.raises(HTTPException) as exc:
            documents.create_version(
                db_session,
                document.id,
                person,
                DocumentVersionCreate(
                    file_name="v.pdf", storage_path=path, file_size=4, mime_type="a/b"
                ),
            )
        assert exc.value.status_code == 400

    def test_list_versions_hidden_from_others(
        self, db_session, other_person, document
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.list_versions(db_session, document.id, other_person, 50, 0)
        assert exc.value.status_code == 404
