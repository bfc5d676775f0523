from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.person import Person
from app.schemas.compliance import (
    ComplianceCalendarEntry,
    ComplianceDashboard,
    ComplianceEventRead,
    ComplianceGenerationResult,
    FilingRequirementRead,
    UpcomingComplianceEvent,
)
from app.services.compliance import compliance_events
from app.services.filing_requirements import get_filing_requirement

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.get(
    "/calendar/{business_id}", response_model=list[ComplianceCalendarEntry]
)
def compliance_calendar(
    business_id: int,
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = None,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.calendar(
        db, business_id, person, status=status_filter, priority=priority
    )


@router.get("/dashboard/{business_id}", response_model=ComplianceDashboard)
def compliance_dashboard(
    business_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.dashboard(db, business_id, person)


@router.get(
    "/upcoming/{business_id}", response_model=list[UpcomingComplianceEvent]
)
def upcoming_compliance_events(
    business_id: int,
    days: int = Query(default=90, ge=1, le=730),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.upcoming(db, business_id, person, days=days)


@router.post(
    "/generate/{business_id}",
    response_model=ComplianceGenerationResult,
    status_code=status.HTTP_201_CREATED,
)
def generate_compliance_events(
    business_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.generate_for_business(db, business_id, person)


@router.patch("/complete/{event_id}", response_model=ComplianceEventRead)
def complete_compliance_event(
    event_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.complete(db, event_id, person)


@router.patch("/dismiss/{event_id}", response_model=ComplianceEventRead)
def dismiss_compliance_event(
    event_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return compliance_events.dismiss(db, event_id, person)


@router.get(
    "/requirements/{state}/{entity_type}", response_model=FilingRequirementRead
)
def filing_requirement(
    state: str, entity_type: str, person: Person = Depends(require_user_auth)
):
    requirement = get_filing_requirement(state, entity_type)
    if requirement is None:
        raise HTTPException(status_code=404, detail="Filing requirement not found")
    return requirement
