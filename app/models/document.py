import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DocumentStatus(enum.Enum):
    active = "active"
    archived = "archived"
    deleted = "deleted"


class AccessLevel(enum.Enum):
    private = "private"
    public = "public"


class SharePermission(enum.Enum):
    view = "view"
    edit = "edit"
    download = "download"


class IntegrityStatus(enum.Enum):
    valid = "valid"
    modified = "modified"
    inaccessible = "inaccessible"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_owner_id", "owner_id"),
        Index("ix_documents_business_entity_id", "business_entity_id"),
        Index("ix_documents_status", "status"),
        Index("ix_documents_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )
    business_entity_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("business_entities.id")
    )

    # Denormalized from the latest version (updated on new version creation)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    document_type: Mapped[str] = mapped_column(String(120), nullable=False)
    service_type: Mapped[str] = mapped_column(String(120), nullable=False)
    category: Mapped[str | None] = mapped_column(String(120))

    extracted_text: Mapped[str | None] = mapped_column(Text)
    ai_tags: Mapped[list | None] = mapped_column(JSON, default=list)
    ai_confidence_score: Mapped[float | None] = mapped_column(Float)

    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )
    uploaded_by_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_latest_version: Mapped[bool] = mapped_column(Boolean, default=True)
    workflow_stage: Mapped[str] = mapped_column(
        String(80), nullable=False, default="uploaded"
    )
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus), default=DocumentStatus.active
    )
    access_level: Mapped[AccessLevel] = mapped_column(
        Enum(AccessLevel), default=AccessLevel.private
    )

    last_accessed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_accessed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner = relationship("Person", foreign_keys=[owner_id])
    uploader = relationship("Person", foreign_keys=[uploaded_by])
    business_entity = relationship("BusinessEntity")
    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        order_by="DocumentVersion.version_number.desc()",
    )
    shares = relationship("DocumentShare", back_populates="document")
    comments = relationship("DocumentComment", back_populates="document")
    tag_assignments = relationship("DocumentTagAssignment", back_populates="document")


# ---------------------------------------------------------------------------
# Document Versions (immutable apart from the latest-version flag)
# ---------------------------------------------------------------------------


class DocumentVersion(Base):
    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint(
            "document_id",
            "version_number",
            name="uq_document_versions_doc_version",
        ),
        Index("ix_document_versions_document_id", "document_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    change_description: Mapped[str | None] = mapped_column(Text)
    is_latest_version: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    document = relationship("Document", back_populates="versions")
    creator = relationship("Person", foreign_keys=[created_by])


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------


class DocumentShare(Base):
    __tablename__ = "document_shares"
    __table_args__ = (
        UniqueConstraint("share_token", name="uq_document_shares_token"),
        Index("ix_document_shares_document_id", "document_id"),
        Index("ix_document_shares_shared_with_person_id", "shared_with_person_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False
    )
    shared_with_person_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("people.id")
    )
    shared_with_email: Mapped[str | None] = mapped_column(String(255))
    permission: Mapped[SharePermission] = mapped_column(
        Enum(SharePermission), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_password_protected: Mapped[bool] = mapped_column(Boolean, default=False)
    password_hash: Mapped[str | None] = mapped_column(String(255))
    share_token: Mapped[str] = mapped_column(String(64), nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    document = relationship("Document", back_populates="shares")
    recipient = relationship("Person", foreign_keys=[shared_with_person_id])
    creator = relationship("Person", foreign_keys=[created_by])


# ---------------------------------------------------------------------------
# Comments (threaded)
# ---------------------------------------------------------------------------


class DocumentComment(Base):
    __tablename__ = "document_comments"
    __table_args__ = (
        Index("ix_document_comments_document_id", "document_id"),
        Index("ix_document_comments_parent_comment_id", "parent_comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=True)
    parent_comment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("document_comments.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    document = relationship("Document", back_populates="comments")
    author = relationship("Person", foreign_keys=[author_id])
    parent = relationship(
        "DocumentComment", remote_side="DocumentComment.id", back_populates="replies"
    )
    replies = relationship("DocumentComment", back_populates="parent")


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


TAG_NAME_MAX_LENGTH = 120


class DocumentTag(Base):
    __tablename__ = "document_tags"
    __table_args__ = (UniqueConstraint("name", name="uq_document_tags_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(TAG_NAME_MAX_LENGTH), nullable=False
    )
    is_system_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    # Null for tags created by the system.
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("people.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    assignments = relationship("DocumentTagAssignment", back_populates="tag")


class DocumentTagAssignment(Base):
    __tablename__ = "document_tag_assignments"
    __table_args__ = (
        UniqueConstraint(
            "document_id", "tag_id", name="uq_document_tag_assignments_doc_tag"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("document_tags.id"), nullable=False
    )
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    document = relationship("Document", back_populates="tag_assignments")
    tag = relationship("DocumentTag", back_populates="assignments")
