from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.config import settings
from app.models.document import Document, DocumentShare, DocumentStatus
from app.models.person import Person
from app.schemas.document import DocumentShareCreate
from app.services.document_access import (
    DOWNLOAD_PERMISSIONS,
    as_utc,
    owned_document,
    share_is_live,
)
from app.services.event import EventType, publish_event
from app.services.hashing import (
    generate_share_token,
    hash_share_password,
    verify_share_password,
)
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def build_share_url(token: str) -> str:
    return f"{settings.share_url_prefix.rstrip('/')}/{token}"


class DocumentShares(ListResponseMixin):
    @staticmethod
    def create(
        db: Session, document_id: int, person: Person, payload: DocumentShareCreate
    ) -> dict:
        document = owned_document(db, document_id, person)
        if document.status == DocumentStatus.deleted:
            raise HTTPException(
                status_code=400, detail="Deleted documents cannot be shared"
            )
        if payload.shared_with_person_id is not None:
            if not db.get(Person, payload.shared_with_person_id):
                raise HTTPException(status_code=404, detail="Recipient not found")
        expires_at = as_utc(payload.expires_at)
        if expires_at is not None and expires_at <= datetime.now(timezone.utc):
            raise HTTPException(
                status_code=400, detail="Share expiry must be in the future"
            )

        share = DocumentShare(
            document_id=document.id,
            shared_with_person_id=payload.shared_with_person_id,
            shared_with_email=payload.shared_with_email,
            permission=payload.permission,
            expires_at=expires_at,
            is_password_protected=payload.password is not None,
            password_hash=(
                hash_share_password(payload.password)
                if payload.password is not None
                else None
            ),
            share_token=generate_share_token(),
            created_by=person.id,
            is_active=True,
        )
        db.add(share)
        db.commit()
        db.refresh(share)
        logger.info("Shared document %s (share %s)", document.id, share.id)
        publish_event(
            EventType.document_shared,
            entity_type="document_share",
            entity_id=share.id,
            actor_id=person.id,
            document_id=document.id,
            payload={
                "shared_with_person_id": (
                    str(share.shared_with_person_id)
                    if share.shared_with_person_id
                    else None
                ),
                "permission": share.permission.value,
            },
        )
        return {"share": share, "share_url": build_share_url(share.share_token)}

    @staticmethod
    def list(
        db: Session, document_id: int, person: Person, limit: int, offset: int
    ) -> list[DocumentShare]:
        owned_document(db, document_id, person)
        stmt = (
            select(DocumentShare)
            .where(DocumentShare.document_id == document_id)
            .order_by(DocumentShare.created_at.desc(), DocumentShare.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return db.scalars(stmt).all()

    @staticmethod
    def revoke(db: Session, document_id: int, share_id: int, person: Person) -> None:
        owned_document(db, document_id, person)
        share = db.get(DocumentShare, share_id)
        if not share or share.document_id != document_id:
            raise HTTPException(status_code=404, detail="Share not found")
        share.is_active = False
        db.commit()
        logger.info("Revoked share %s on document %s", share_id, document_id)
        publish_event(
            EventType.share_revoked,
            entity_type="document_share",
            entity_id=share_id,
            actor_id=person.id,
            document_id=document_id,
        )

    @staticmethod
    def resolve(
        db: Session,
        token: str,
        password: str | None = None,
        require_download: bool = False,
    ) -> tuple[DocumentShare, Document]:
        """Bearer access through a share token.

        Unknown or revoked tokens and deleted documents give 404, an expired
        share 410, a missing or wrong password 403. Each successful access
        counts as a download of the document.
        """
        share = db.scalars(
            select(DocumentShare).where(DocumentShare.share_token == token)
        ).first()
        if not share or not share.is_active:
            raise HTTPException(status_code=404, detail="Share not found")
        if not share_is_live(share):
            raise HTTPException(status_code=410, detail="Share link has expired")
        document = share.document
        if document.status == DocumentStatus.deleted:
            raise HTTPException(status_code=404, detail="Share not found")
        if share.is_password_protected:
            if not password or not verify_share_password(
                password, share.password_hash or ""
            ):
                raise HTTPException(status_code=403, detail="Invalid share password")
        if require_download and share.permission not in DOWNLOAD_PERMISSIONS:
            raise HTTPException(
                status_code=403, detail="This share does not permit downloads"
            )

        db.execute(
            update(Document)
            .where(Document.id == document.id)
            .values(
                last_accessed_at=datetime.now(timezone.utc),
                last_accessed_by=share.shared_with_person_id,
                download_count=Document.download_count + 1,
            )
        )
        db.commit()
        db.refresh(document)
        logger.info("Share %s accessed for document %s", share.id, document.id)
        return share, document


document_shares = DocumentShares()
