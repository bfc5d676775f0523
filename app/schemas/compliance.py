from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.compliance import ComplianceEventStatus, CompliancePriority


class ComplianceEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_entity_id: int
    event_type: str
    title: str
    description: str | None = None
    due_date: date
    status: ComplianceEventStatus
    priority: CompliancePriority
    category: str
    is_recurring: bool
    recurring_interval: str | None = None
    completed_at: datetime | None = None
    completed_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class ComplianceCalendarEntry(ComplianceEventRead):
    display_status: str
    days_until_due: int


class UpcomingComplianceEvent(ComplianceCalendarEntry):
    urgency: str


class ComplianceDashboard(BaseModel):
    business_entity_id: int
    total: int
    pending: int
    completed: int
    overdue: int
    due_this_week: int
    compliance_score: int


class ComplianceGenerationResult(BaseModel):
    business_entity_id: int
    generated: int
    events: list[ComplianceEventRead]


class FilingRequirementRead(BaseModel):
    state: str
    entity_type: str
    required: bool
    frequency: str | None = None
    notes: str | None = None
