from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from app.models.business import BusinessEntity
from app.models.document import (
    Document,
    DocumentStatus,
    DocumentVersion,
    IntegrityStatus,
)
from app.models.person import Person
from app.schemas.document import DocumentCreate, DocumentVersionCreate
from app.services.common import apply_pagination
from app.services.document_access import (
    downloadable_document,
    owned_document,
    visible_document,
)
from app.services.document_classifier import ClassificationResult, classifier
from app.services.document_tag import DocumentTags
from app.services.event import EventType, publish_event
from app.services.hashing import compute_file_hash
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

INITIAL_VERSION_DESCRIPTION = "Initial upload"

_VALID_STATUSES = {e.value for e in DocumentStatus}


def _hash_stored_file(storage_path: str) -> str:
    try:
        return compute_file_hash(storage_path)
    except OSError as e:
        logger.warning("Stored file %s is not readable: %s", storage_path, e)
        raise HTTPException(status_code=400, detail="Stored file is not readable")


def _classify(payload: DocumentCreate) -> ClassificationResult:
    """Best-effort enrichment; any failure yields an empty result."""
    if not classifier.supports(payload.mime_type):
        return ClassificationResult()
    try:
        result = classifier.classify(
            payload.storage_path, payload.mime_type, payload.original_file_name
        )
    except Exception as e:
        logger.warning(
            "Classification failed for %s, continuing without metadata: %s",
            payload.original_file_name,
            e,
        )
        return ClassificationResult()
    return result or ClassificationResult()


class Documents(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: DocumentCreate) -> Document:
        if not db.get(Person, payload.owner_id):
            raise HTTPException(status_code=404, detail="Owner not found")
        if payload.business_entity_id is not None:
            business = db.get(BusinessEntity, payload.business_entity_id)
            if not business or business.owner_id != payload.owner_id:
                raise HTTPException(
                    status_code=404, detail="Business entity not found"
                )

        file_hash = _hash_stored_file(payload.storage_path)
        enrichment = _classify(payload)

        try:
            document = Document(
                **payload.model_dump(),
                file_hash=file_hash,
                extracted_text=enrichment.extracted_text,
                ai_tags=enrichment.tags,
                ai_confidence_score=enrichment.confidence,
                version=1,
                is_latest_version=True,
                workflow_stage="uploaded",
                status=DocumentStatus.active,
            )
            db.add(document)
            db.flush()

            db.add(
                DocumentVersion(
                    document_id=document.id,
                    version_number=1,
                    file_name=payload.file_name,
                    storage_path=payload.storage_path,
                    file_size=payload.file_size,
                    mime_type=payload.mime_type,
                    file_hash=file_hash,
                    change_description=INITIAL_VERSION_DESCRIPTION,
                    is_latest_version=True,
                    created_by=payload.uploaded_by,
                )
            )
            db.flush()

            DocumentTags.assign_system_tags(
                db, document.id, enrichment.tags, payload.uploaded_by
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(document)
        logger.info("Created document %s", document.id)
        publish_event(
            EventType.document_created,
            entity_type="document",
            entity_id=document.id,
            actor_id=document.uploaded_by,
            document_id=document.id,
        )
        return document

    @staticmethod
    def get(db: Session, document_id: int, person: Person) -> Document:
        document = visible_document(db, document_id, person)
        return Documents._record_access(db, document, person)

    @staticmethod
    def download(db: Session, document_id: int, person: Person) -> Document:
        document = downloadable_document(db, document_id, person)
        return Documents._record_access(db, document, person)

    @staticmethod
    def _record_access(db: Session, document: Document, person: Person) -> Document:
        db.execute(
            update(Document)
            .where(Document.id == document.id)
            .values(
                last_accessed_at=datetime.now(timezone.utc),
                last_accessed_by=person.id,
                download_count=Document.download_count + 1,
            )
        )
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def list(
        db: Session,
        person: Person,
        service_type: str | None,
        document_type: str | None,
        status: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> list[Document]:  # type: ignore[override]
        stmt = select(Document).where(Document.owner_id == person.id)
        if service_type is not None:
            stmt = stmt.where(Document.service_type == service_type)
        if document_type is not None:
            stmt = stmt.where(Document.document_type == document_type)
        if status is None:
            stmt = stmt.where(Document.status != DocumentStatus.deleted)
        else:
            if status not in _VALID_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid status. Allowed: {sorted(_VALID_STATUSES)}",
                )
            stmt = stmt.where(Document.status == DocumentStatus(status))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Document.original_file_name.ilike(pattern),
                    Document.extracted_text.ilike(pattern),
                )
            )
        stmt = stmt.order_by(Document.created_at.desc(), Document.id.desc())
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def delete(db: Session, document_id: int, person: Person) -> Document:
        document = owned_document(db, document_id, person)
        document.status = DocumentStatus.deleted
        db.commit()
        db.refresh(document)
        logger.info("Soft-deleted document %s", document.id)
        publish_event(
            EventType.document_deleted,
            entity_type="document",
            entity_id=document.id,
            actor_id=person.id,
            document_id=document.id,
        )
        return document

    @staticmethod
    def archive(db: Session, document_id: int, person: Person) -> Document:
        document = owned_document(db, document_id, person)
        if document.status == DocumentStatus.deleted:
            raise HTTPException(
                status_code=400, detail="Deleted documents cannot be archived"
            )
        document.status = DocumentStatus.archived
        db.commit()
        db.refresh(document)
        logger.info("Archived document %s", document.id)
        publish_event(
            EventType.document_archived,
            entity_type="document",
            entity_id=document.id,
            actor_id=person.id,
            document_id=document.id,
        )
        return document

    @staticmethod
    def verify_integrity(db: Session, document_id: int, person: Person) -> dict:
        document = visible_document(db, document_id, person)
        report = {
            "document_id": document.id,
            "original_hash": document.file_hash,
            "current_hash": None,
        }
        try:
            current_hash = compute_file_hash(document.storage_path)
        except OSError as e:
            logger.warning(
                "Integrity check could not read document %s: %s", document.id, e
            )
            return {
                **report,
                "status": IntegrityStatus.inaccessible,
                "message": "Document file is missing or unreadable",
            }
        report["current_hash"] = current_hash
        if current_hash == document.file_hash:
            return {
                **report,
                "status": IntegrityStatus.valid,
                "message": "Document integrity verified",
            }
        logger.warning(
            "Document %s content does not match its stored hash", document.id
        )
        return {
            **report,
            "status": IntegrityStatus.modified,
            "message": "Document has been modified since upload",
        }

    @staticmethod
    def analytics(db: Session, person: Person) -> list[dict]:
        """Per (service type, status) document counts and sizes.

        Admins see every document; everyone else only their own.
        """
        stmt = select(
            Document.service_type,
            Document.status,
            func.count(Document.id),
            func.coalesce(func.sum(Document.file_size), 0),
            func.coalesce(func.avg(Document.file_size), 0),
        )
        if not person.is_admin:
            stmt = stmt.where(Document.owner_id == person.id)
        stmt = stmt.group_by(Document.service_type, Document.status).order_by(
            Document.service_type, Document.status
        )
        return [
            {
                "service_type": service_type,
                "status": status,
                "total_documents": total,
                "total_size": int(total_size),
                "average_size": round(float(average_size), 2),
            }
            for service_type, status, total, total_size, average_size in db.execute(
                stmt
            )
        ]

    @staticmethod
    def get_owned(db: Session, document_id: int, person: Person) -> Document:
        return owned_document(db, document_id, person)

    # ------------------------------------------------------------------
    # Version sub-operations
    # ------------------------------------------------------------------

    @staticmethod
    def create_version(
        db: Session, document_id: int, person: Person, payload: DocumentVersionCreate
    ) -> DocumentVersion:
        document = owned_document(db, document_id, person, for_update=True)
        if document.status == DocumentStatus.deleted:
            raise HTTPException(
                status_code=400, detail="Cannot add a version to a deleted document"
            )
        file_hash = _hash_stored_file(payload.storage_path)

        try:
            latest = db.scalar(
                select(func.max(DocumentVersion.version_number)).where(
                    DocumentVersion.document_id == document.id
                )
            )
            next_version = (latest or 0) + 1

            db.execute(
                update(DocumentVersion)
                .where(DocumentVersion.document_id == document.id)
                .values(is_latest_version=False)
            )
            version = DocumentVersion(
                document_id=document.id,
                version_number=next_version,
                file_name=payload.file_name,
                storage_path=payload.storage_path,
                file_size=payload.file_size,
                mime_type=payload.mime_type,
                file_hash=file_hash,
                change_description=payload.change_description,
                is_latest_version=True,
                created_by=person.id,
            )
            db.add(version)
            db.flush()

            document.version = next_version
            document.is_latest_version = True
            document.file_name = payload.file_name
            document.storage_path = payload.storage_path
            document.file_size = payload.file_size
            document.mime_type = payload.mime_type
            document.file_hash = file_hash
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(version)
        logger.info(
            "Created version %s (v%d) for document %s",
            version.id,
            next_version,
            document.id,
        )
        publish_event(
            EventType.version_created,
            entity_type="document_version",
            entity_id=version.id,
            actor_id=person.id,
            document_id=document.id,
            payload={"version_number": next_version},
        )
        return version

    @staticmethod
    def list_versions(
        db: Session, document_id: int, person: Person, limit: int, offset: int
    ) -> list[DocumentVersion]:
        visible_document(db, document_id, person)
        stmt = (
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .limit(limit)
            .offset(offset)
        )
        return db.scalars(stmt).all()


documents = Documents()
