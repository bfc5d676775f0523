import logging
import uuid

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.models.document import DocumentTag, DocumentTagAssignment
from app.models.person import Person
from app.services.document_access import editable_document, visible_document
from app.services.event import EventType, publish_event
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def normalize_tag_name(name: str) -> str:
    return " ".join(name.strip().lower().split())


def _insert_ignoring_conflicts(db: Session, model, values: dict) -> None:
    insert = _INSERT_BY_DIALECT.get(db.get_bind().dialect.name)
    if insert is None:
        raise RuntimeError(
            f"Unsupported database dialect: {db.get_bind().dialect.name}"
        )
    db.execute(insert(model).values(**values).on_conflict_do_nothing())


class DocumentTags(ListResponseMixin):
    @staticmethod
    def get_or_create(
        db: Session,
        name: str,
        created_by: uuid.UUID | None = None,
        is_system_generated: bool = False,
    ) -> DocumentTag:
        tag_name = normalize_tag_name(name)
        _insert_ignoring_conflicts(
            db,
            DocumentTag,
            {
                "name": tag_name,
                "is_system_generated": is_system_generated,
                "created_by": created_by,
            },
        )
        return db.scalars(select(DocumentTag).where(DocumentTag.name == tag_name)).one()

    @staticmethod
    def assign(
        db: Session, document_id: int, tag_id: int, assigned_by: uuid.UUID
    ) -> DocumentTagAssignment:
        """Insert the (document, tag) pair; an existing pair is left untouched."""
        _insert_ignoring_conflicts(
            db,
            DocumentTagAssignment,
            {"document_id": document_id, "tag_id": tag_id, "assigned_by": assigned_by},
        )
        return db.scalars(
            select(DocumentTagAssignment)
            .where(DocumentTagAssignment.document_id == document_id)
            .where(DocumentTagAssignment.tag_id == tag_id)
        ).one()

    @staticmethod
    def assign_system_tags(
        db: Session, document_id: int, tag_names: list[str], assigned_by: uuid.UUID
    ) -> list[DocumentTag]:
        # Runs inside the caller's transaction; does not commit.
        tags = []
        for name in tag_names:
            if not normalize_tag_name(name):
                continue
            tag = DocumentTags.get_or_create(db, name, is_system_generated=True)
            DocumentTags.assign(db, document_id, tag.id, assigned_by)
            tags.append(tag)
        return tags

    @staticmethod
    def assign_by_name(
        db: Session, document_id: int, name: str, person: Person
    ) -> DocumentTag:
        editable_document(db, document_id, person)
        if not normalize_tag_name(name):
            raise HTTPException(status_code=400, detail="Tag name is required")
        tag = DocumentTags.get_or_create(db, name, created_by=person.id)
        DocumentTags.assign(db, document_id, tag.id, person.id)
        db.commit()
        logger.info("Assigned tag %s to document %s", tag.name, document_id)
        publish_event(
            EventType.tag_assigned,
            entity_type="document_tag",
            entity_id=tag.id,
            actor_id=person.id,
            document_id=document_id,
            payload={"tag": tag.name},
        )
        return tag

    @staticmethod
    def list(
        db: Session, document_id: int, person: Person, limit: int, offset: int
    ) -> list[DocumentTag]:
        visible_document(db, document_id, person)
        stmt = (
            select(DocumentTag)
            .join(DocumentTagAssignment, DocumentTagAssignment.tag_id == DocumentTag.id)
            .where(DocumentTagAssignment.document_id == document_id)
            .order_by(DocumentTag.name.asc())
            .limit(limit)
            .offset(offset)
        )
        return db.scalars(stmt).all()


document_tags = DocumentTags()
