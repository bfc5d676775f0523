"""Visibility rules shared by the document services.

A missing document and a document the caller may not see produce the same
404, so callers cannot discover the existence of other people's files.
"""

from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.models.document import (
    AccessLevel,
    Document,
    DocumentShare,
    DocumentStatus,
    SharePermission,
)
from app.models.person import Person

NOT_FOUND_DETAIL = "Document not found"
NOT_FOUND_OR_DENIED_DETAIL = "Document not found or access denied"

DOWNLOAD_PERMISSIONS = frozenset({SharePermission.download, SharePermission.edit})
EDIT_PERMISSIONS = frozenset({SharePermission.edit})


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def share_is_live(share: DocumentShare, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    if not share.is_active:
        return False
    expires_at = as_utc(share.expires_at)
    return expires_at is None or expires_at > now


def has_share_access(
    db: Session,
    document_id: int,
    person: Person,
    permissions: frozenset[SharePermission] | None = None,
) -> bool:
    """True when the person holds a live share, optionally of a given kind."""
    now = datetime.now(timezone.utc)
    stmt = (
        select(DocumentShare)
        .where(DocumentShare.document_id == document_id)
        .where(DocumentShare.shared_with_person_id == person.id)
        .where(DocumentShare.is_active.is_(True))
        .where(
            or_(DocumentShare.expires_at.is_(None), DocumentShare.expires_at > now)
        )
        .limit(1)
    )
    if permissions is not None:
        stmt = stmt.where(DocumentShare.permission.in_(permissions))
    return db.scalars(stmt).first() is not None


def can_view(db: Session, document: Document, person: Person) -> bool:
    if document.owner_id == person.id or person.is_admin:
        return True
    if document.status == DocumentStatus.deleted:
        return False
    if document.access_level == AccessLevel.public:
        return True
    return has_share_access(db, document.id, person)


def visible_document(db: Session, document_id: int, person: Person) -> Document:
    document = db.get(Document, document_id)
    if not document or not can_view(db, document, person):
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    return document


def owned_document(
    db: Session, document_id: int, person: Person, for_update: bool = False
) -> Document:
    document = db.get(
        Document, document_id, with_for_update=True if for_update else None
    )
    if not document or document.owner_id != person.id:
        raise HTTPException(status_code=404, detail=NOT_FOUND_OR_DENIED_DETAIL)
    return document


def downloadable_document(db: Session, document_id: int, person: Person) -> Document:
    """Owner, admin, or a person holding a download or edit share."""
    document = visible_document(db, document_id, person)
    if document.owner_id == person.id or person.is_admin:
        return document
    if not has_share_access(db, document.id, person, DOWNLOAD_PERMISSIONS):
        raise HTTPException(
            status_code=403, detail="This document may not be downloaded"
        )
    return document


def editable_document(db: Session, document_id: int, person: Person) -> Document:
    """Owner, or a person holding an edit share on a live document."""
    document = visible_document(db, document_id, person)
    if document.owner_id == person.id:
        return document
    if document.status == DocumentStatus.deleted:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    if not has_share_access(db, document.id, person, EDIT_PERMISSIONS):
        raise HTTPException(status_code=403, detail="This document may not be edited")
    return document
