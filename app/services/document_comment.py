import logging

from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.models.document import DocumentComment
from app.models.person import Person
from app.schemas.document import DocumentCommentCreate
from app.services.document_access import visible_document
from app.services.event import EventType, publish_event
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


class DocumentComments(ListResponseMixin):
    @staticmethod
    def create(
        db: Session, document_id: int, person: Person, payload: DocumentCommentCreate
    ) -> DocumentComment:
        document = visible_document(db, document_id, person)
        if payload.parent_comment_id is not None:
            parent = db.get(DocumentComment, payload.parent_comment_id)
            if not parent or parent.document_id != document.id:
                raise HTTPException(
                    status_code=400,
                    detail="Parent comment must belong to the same document",
                )

        comment = DocumentComment(
            document_id=document.id,
            author_id=person.id,
            body=payload.body,
            is_internal=payload.is_internal,
            parent_comment_id=payload.parent_comment_id,
        )
        db.add(comment)
        db.commit()
        db.refresh(comment)
        logger.info("Created comment %s on document %s", comment.id, document.id)
        publish_event(
            EventType.comment_created,
            entity_type="document_comment",
            entity_id=comment.id,
            actor_id=person.id,
            document_id=document.id,
            payload={"is_internal": comment.is_internal},
        )
        return comment

    @staticmethod
    def list(
        db: Session,
        document_id: int,
        person: Person,
        include_internal: bool,
        limit: int,
        offset: int,
    ) -> list[DocumentComment]:  # type: ignore[override]
        """Comments oldest first.

        Only the owner and admins see other people's internal comments.
        """
        document = visible_document(db, document_id, person)
        stmt = select(DocumentComment).where(DocumentComment.document_id == document.id)
        privileged = person.is_admin or document.owner_id == person.id
        if not include_internal:
            stmt = stmt.where(DocumentComment.is_internal.is_(False))
        elif not privileged:
            stmt = stmt.where(
                or_(
                    DocumentComment.is_internal.is_(False),
                    DocumentComment.author_id == person.id,
                )
            )
        stmt = (
            stmt.order_by(DocumentComment.created_at.asc(), DocumentComment.id.asc())
            .limit(limit)
            .offset(offset)
        )
        return db.scalars(stmt).all()


document_comments = DocumentComments()
