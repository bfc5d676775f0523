from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.document import (
    AccessLevel,
    DocumentStatus,
    IntegrityStatus,
    SharePermission,
)

# bcrypt ignores or rejects input beyond this many bytes.
SHARE_PASSWORD_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class DocumentCreate(BaseModel):
    owner_id: UUID
    business_entity_id: int | None = None
    file_name: str = Field(min_length=1, max_length=500)
    original_file_name: str = Field(min_length=1, max_length=500)
    storage_path: str = Field(min_length=1, max_length=1024)
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1, max_length=255)
    document_type: str = Field(min_length=1, max_length=120)
    service_type: str = Field(min_length=1, max_length=120)
    category: str | None = Field(default=None, max_length=120)
    uploaded_by: UUID
    uploaded_by_admin: bool = False
    access_level: AccessLevel = AccessLevel.private


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: UUID
    business_entity_id: int | None = None
    file_name: str
    original_file_name: str
    file_size: int
    mime_type: str
    file_hash: str
    document_type: str
    service_type: str
    category: str | None = None
    extracted_text: str | None = None
    ai_tags: list[str] = Field(default_factory=list)
    ai_confidence_score: float | None = None
    uploaded_by: UUID
    uploaded_by_admin: bool
    version: int
    is_latest_version: bool
    workflow_stage: str
    status: DocumentStatus
    access_level: AccessLevel
    last_accessed_at: datetime | None = None
    last_accessed_by: UUID | None = None
    download_count: int
    created_at: datetime
    updated_at: datetime

    @field_validator("ai_tags", mode="before")
    @classmethod
    def _default_tags(cls, value):
        return value or []


class DocumentAnalyticsRow(BaseModel):
    service_type: str
    status: DocumentStatus
    total_documents: int
    total_size: int
    average_size: float


# ---------------------------------------------------------------------------
# DocumentVersion
# ---------------------------------------------------------------------------


class DocumentVersionCreate(BaseModel):
    file_name: str = Field(min_length=1, max_length=500)
    storage_path: str = Field(min_length=1, max_length=1024)
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1, max_length=255)
    change_description: str | None = None


class DocumentVersionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    version_number: int
    file_name: str
    file_size: int
    mime_type: str
    file_hash: str
    change_description: str | None = None
    is_latest_version: bool
    created_by: UUID
    created_at: datetime


# ---------------------------------------------------------------------------
# DocumentShare
# ---------------------------------------------------------------------------


class DocumentShareCreate(BaseModel):
    shared_with_person_id: UUID | None = None
    shared_with_email: str | None = Field(default=None, max_length=255)
    permission: SharePermission = SharePermission.view
    expires_at: datetime | None = None
    password: str | None = Field(
        default=None, min_length=1, max_length=SHARE_PASSWORD_MAX_BYTES
    )

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str | None) -> str | None:
        if value is not None and len(value.encode("utf-8")) > SHARE_PASSWORD_MAX_BYTES:
            raise ValueError(
                f"password must be at most {SHARE_PASSWORD_MAX_BYTES} bytes"
            )
        return value

    @model_validator(mode="after")
    def _require_recipient(self):
        if self.shared_with_person_id is None and not self.shared_with_email:
            raise ValueError(
                "Either shared_with_person_id or shared_with_email is required"
            )
        return self


class DocumentShareRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    shared_with_person_id: UUID | None = None
    shared_with_email: str | None = None
    permission: SharePermission
    expires_at: datetime | None = None
    is_password_protected: bool
    share_token: str
    created_by: UUID
    is_active: bool
    created_at: datetime


class ShareCreatedResponse(BaseModel):
    share: DocumentShareRead
    share_url: str


class SharedDocumentRead(BaseModel):
    permission: SharePermission
    expires_at: datetime | None = None
    document: DocumentRead


# ---------------------------------------------------------------------------
# DocumentComment
# ---------------------------------------------------------------------------


class DocumentCommentCreate(BaseModel):
    body: str = Field(min_length=1)
    is_internal: bool = True
    parent_comment_id: int | None = None


class DocumentCommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    author_id: UUID
    body: str
    is_internal: bool
    parent_comment_id: int | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class DocumentTagAssign(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class DocumentTagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_system_generated: bool


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------


class IntegrityReport(BaseModel):
    document_id: int
    status: IntegrityStatus
    message: str
    original_hash: str
    current_hash: str | None = None
