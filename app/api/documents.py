import os
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from fastapi.responses import FileResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.document import AccessLevel, Document
from app.models.person import Person
from app.observability import DOCUMENT_UPLOADS
from app.schemas.common import ListResponse
from app.schemas.document import (
    DocumentAnalyticsRow,
    DocumentCommentCreate,
    DocumentCommentRead,
    DocumentCreate,
    DocumentRead,
    DocumentShareCreate,
    DocumentShareRead,
    DocumentTagAssign,
    DocumentTagRead,
    DocumentVersionCreate,
    DocumentVersionRead,
    IntegrityReport,
    ShareCreatedResponse,
)
from app.services import document as doc_service
from app.services.document_comment import document_comments
from app.services.document_share import document_shares
from app.services.document_storage import storage
from app.services.document_tag import document_tags

router = APIRouter(prefix="/documents", tags=["documents"])


def file_response(document: Document):
    if storage.is_configured():
        return RedirectResponse(storage.generate_download_url(document.storage_path))
    if not os.path.isfile(document.storage_path):
        raise HTTPException(status_code=404, detail="Document file not found")
    return FileResponse(
        document.storage_path,
        media_type=document.mime_type,
        filename=document.original_file_name,
    )


# ------------------------------------------------------------------
# Upload and document reads
# ------------------------------------------------------------------


@router.post(
    "/upload-document",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def upload_document(
    file: UploadFile = File(...),
    document_type: str = Form(..., min_length=1, max_length=120),
    service_type: str = Form(default="general", min_length=1, max_length=120),
    document_name: str | None = Form(default=None, max_length=500),
    category: str | None = Form(default=None, max_length=120),
    business_entity_id: int | None = Form(default=None),
    access_level: AccessLevel = Form(default=AccessLevel.private),
    owner_id: uuid.UUID | None = Form(default=None),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    owner = owner_id or person.id
    if owner != person.id and not person.is_admin:
        raise HTTPException(
            status_code=403,
            detail="Only administrators can upload on behalf of another person",
        )
    original_name = document_name or file.filename or "upload"
    stored = storage.save_upload(file.file, str(owner), original_name)
    try:
        document = doc_service.documents.create(
            db,
            DocumentCreate(
                owner_id=owner,
                business_entity_id=business_entity_id,
                file_name=stored.file_name,
                original_file_name=original_name,
                storage_path=stored.storage_path,
                file_size=stored.file_size,
                mime_type=file.content_type or "application/octet-stream",
                document_type=document_type,
                service_type=service_type,
                category=category,
                uploaded_by=person.id,
                uploaded_by_admin=owner != person.id,
                access_level=access_level,
            ),
        )
    except Exception:
        storage.delete(stored.storage_path)
        raise
    DOCUMENT_UPLOADS.inc()
    return document


@router.get("", response_model=ListResponse[DocumentRead])
def list_documents(
    service_type: str | None = None,
    document_type: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.list_response(
        db,
        person,
        service_type,
        document_type,
        status_filter,
        search,
        limit,
        offset,
    )


@router.get("/analytics", response_model=list[DocumentAnalyticsRow])
def document_analytics(
    person: Person = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return doc_service.documents.analytics(db, person)


@router.get("/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.get(db, document_id, person)


@router.get("/{document_id}/download")
def download_document(
    document_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    document = doc_service.documents.download(db, document_id, person)
    return file_response(document)


@router.post("/{document_id}/archive", response_model=DocumentRead)
def archive_document(
    document_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.archive(db, document_id, person)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    doc_service.documents.delete(db, document_id, person)


@router.get("/{document_id}/integrity", response_model=IntegrityReport)
def verify_document_integrity(
    document_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.verify_integrity(db, document_id, person)


# ------------------------------------------------------------------
# Version sub-endpoints
# ------------------------------------------------------------------


@router.post(
    "/{document_id}/versions",
    response_model=DocumentVersionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_version(
    document_id: int,
    file: UploadFile = File(...),
    change_description: str | None = Form(default=None),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    # Ownership is checked before the upload is written.
    document = doc_service.documents.get_owned(db, document_id, person)
    stored = storage.save_upload(
        file.file, str(document.owner_id), file.filename or document.original_file_name
    )
    try:
        return doc_service.documents.create_version(
            db,
            document_id,
            person,
            DocumentVersionCreate(
                file_name=stored.file_name,
                storage_path=stored.storage_path,
                file_size=stored.file_size,
                mime_type=file.content_type or document.mime_type,
                change_description=change_description,
            ),
        )
    except Exception:
        storage.delete(stored.storage_path)
        raise


@router.get(
    "/{document_id}/versions",
    response_model=ListResponse[DocumentVersionRead],
)
def list_versions(
    document_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    items = doc_service.documents.list_versions(db, document_id, person, limit, offset)
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


# ------------------------------------------------------------------
# Sharing
# ------------------------------------------------------------------


@router.post(
    "/{document_id}/share",
    response_model=ShareCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def share_document(
    document_id: int,
    payload: DocumentShareCreate,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_shares.create(db, document_id, person, payload)


@router.get("/{document_id}/shares", response_model=ListResponse[DocumentShareRead])
def list_shares(
    document_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_shares.list_response(db, document_id, person, limit, offset)


@router.delete(
    "/{document_id}/shares/{share_id}", status_code=status.HTTP_204_NO_CONTENT
)
def revoke_share(
    document_id: int,
    share_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    document_shares.revoke(db, document_id, share_id, person)


# ------------------------------------------------------------------
# Comments and tags
# ------------------------------------------------------------------


@router.post(
    "/{document_id}/comments",
    response_model=DocumentCommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    document_id: int,
    payload: DocumentCommentCreate,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_comments.create(db, document_id, person, payload)


@router.get(
    "/{document_id}/comments", response_model=ListResponse[DocumentCommentRead]
)
def list_comments(
    document_id: int,
    include_internal: bool = True,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_comments.list_response(
        db, document_id, person, include_internal, limit, offset
    )


@router.post(
    "/{document_id}/tags",
    response_model=DocumentTagRead,
    status_code=status.HTTP_201_CREATED,
)
def assign_tag(
    document_id: int,
    payload: DocumentTagAssign,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_tags.assign_by_name(db, document_id, payload.name, person)


@router.get("/{document_id}/tags", response_model=ListResponse[DocumentTagRead])
def list_tags(
    document_id: int,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return document_tags.list_response(db, document_id, person, limit, offset)
