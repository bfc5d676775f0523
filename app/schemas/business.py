from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BusinessEntityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    entity_type: str = Field(min_length=1, max_length=80)
    state: str = Field(min_length=1, max_length=80)
    filed_date: date | None = None


class BusinessEntityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: UUID
    name: str
    entity_type: str
    state: str
    filed_date: date | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
