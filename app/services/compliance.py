from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.business import BusinessEntity
from app.models.compliance import (
    ComplianceEvent,
    ComplianceEventStatus,
    CompliancePriority,
)
from app.models.person import Person
from app.schemas.compliance import ComplianceEventRead
from app.services.business import businesses
from app.services.event import EventType, publish_event
from app.services.filing_requirements import get_filing_requirement
from app.services.notification import notifications

logger = logging.getLogger(__name__)

OVERDUE = "overdue"
BOIR_EARLIEST_DUE_DATE = date(2025, 1, 1)
BOIR_FILING_WINDOW_DAYS = 90
NEW_BUSINESS_LOOKBACK_DAYS = 7

_FEDERAL_ENTITY_TYPES = (
    "LLC",
    "Corporation",
    "Professional Corporation",
    "S-Corp",
    "C-Corp",
)

# ---------------------------------------------------------------------------
# Read-time derivations
# ---------------------------------------------------------------------------


def days_until_due(due_date: date, today: date) -> int:
    return (due_date - today).days


def is_overdue(status: ComplianceEventStatus, due_date: date, today: date) -> bool:
    return (
        status == ComplianceEventStatus.pending
        and days_until_due(due_date, today) < 0
    )


def is_due_this_week(
    status: ComplianceEventStatus, due_date: date, today: date
) -> bool:
    return (
        status == ComplianceEventStatus.pending
        and 0 <= days_until_due(due_date, today) <= 7
    )


def compliance_score(completed: int, total: int) -> int:
    if total == 0:
        return 100
    return round(completed / total * 100)


def display_status(status: ComplianceEventStatus, due_date: date, today: date) -> str:
    if is_overdue(status, due_date, today):
        return OVERDUE
    return status.value


def reminder_urgency(days: int, priority: CompliancePriority) -> str | None:
    """Urgency of a reminder for an event due in ``days``; None sends nothing."""
    high = priority == CompliancePriority.high
    if days <= 1:
        return "urgent"
    if days <= 7 and high:
        return "high"
    if days <= 14 and high:
        return "medium"
    if days <= 30:
        return "low"
    return None


def upcoming_urgency(days: int) -> str:
    if days <= 7:
        return "high"
    if days <= 14:
        return "medium"
    return "low"


def _describe_due(days: int) -> str:
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return f"in {days} days"


# ---------------------------------------------------------------------------
# Templates and due dates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplianceTemplate:
    event_type: str
    title: str
    description: str
    category: str
    priority: CompliancePriority
    is_recurring: bool
    recurring_interval: str | None = None
    entity_types: tuple[str, ...] | None = None
    states: tuple[str, ...] | None = None
    # Generated only where the state filing table requires a report.
    requires_state_filing: bool = False

    def applies_to(self, business: BusinessEntity) -> bool:
        if self.entity_types and business.entity_type not in self.entity_types:
            return False
        if self.states and business.state not in self.states:
            return False
        return True


COMPLIANCE_TEMPLATES: tuple[ComplianceTemplate, ...] = (
    ComplianceTemplate(
        event_type="tax_filing",
        title="Annual Income Tax Return Filing",
        description="File federal income tax return for your business entity",
        category="tax",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="yearly",
        entity_types=_FEDERAL_ENTITY_TYPES,
    ),
    ComplianceTemplate(
        event_type="quarterly_taxes",
        title="Quarterly Estimated Tax Payment",
        description="Submit quarterly estimated tax payments to IRS",
        category="tax",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="quarterly",
        entity_types=_FEDERAL_ENTITY_TYPES,
    ),
    ComplianceTemplate(
        event_type="boir_filing",
        title="Beneficial Ownership Information Report",
        description="File BOIR with FinCEN as required by Corporate Transparency Act",
        category="compliance",
        priority=CompliancePriority.high,
        is_recurring=False,
        entity_types=_FEDERAL_ENTITY_TYPES,
    ),
    ComplianceTemplate(
        event_type="annual_report",
        title="Annual Report Filing",
        description="File annual report with Secretary of State",
        category="state_filing",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="yearly",
        requires_state_filing=True,
    ),
    ComplianceTemplate(
        event_type="franchise_tax",
        title="Franchise Tax Payment",
        description="Pay state franchise tax to maintain good standing",
        category="tax",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="yearly",
        entity_types=_FEDERAL_ENTITY_TYPES,
        states=("California", "Texas", "Delaware", "New York"),
    ),
    ComplianceTemplate(
        event_type="business_license_renewal",
        title="Business License Renewal",
        description="Renew business license with local authorities",
        category="licensing",
        priority=CompliancePriority.medium,
        is_recurring=True,
        recurring_interval="yearly",
        entity_types=_FEDERAL_ENTITY_TYPES,
    ),
    ComplianceTemplate(
        event_type="ca_llc_fee",
        title="California LLC Annual Fee",
        description="Pay California LLC annual fee to Franchise Tax Board",
        category="tax",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="yearly",
        entity_types=("LLC",),
        states=("California",),
    ),
    ComplianceTemplate(
        event_type="ca_statement_of_information",
        title="California Statement of Information",
        description="File Statement of Information with California Secretary of State",
        category="state_filing",
        priority=CompliancePriority.high,
        is_recurring=True,
        recurring_interval="biennial",
        entity_types=("LLC", "Corporation"),
        states=("California",),
    ),
)


def _last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _anniversary(base: date, year: int) -> date:
    # Feb 29 falls back to Feb 28 in non-leap years.
    day = min(base.day, calendar.monthrange(year, base.month)[1])
    return date(year, base.month, day)


def _next_anniversary(base: date, today: date) -> date:
    year = max(base.year + 1, today.year)
    candidate = _anniversary(base, year)
    if candidate <= today:
        candidate = _anniversary(base, year + 1)
    return candidate


def calculate_due_dates(
    template: ComplianceTemplate,
    base_date: date,
    today: date,
    frequency: str | None = None,
) -> list[date]:
    """Due dates for one template, keeping only those strictly after ``today``.

    ``frequency`` is the state filing cadence and only affects the annual
    report template.
    """
    year = today.year
    event_type = template.event_type
    if event_type == "quarterly_taxes":
        dates = [
            date(year, 4, 15),
            date(year, 6, 15),
            date(year, 9, 15),
            date(year + 1, 1, 15),
        ]
    elif event_type == "annual_report":
        dates = [_last_day_of_month(year, base_date.month)]
        if frequency == "biennial":
            dates.append(_last_day_of_month(year + 2, base_date.month))
    elif event_type == "ca_llc_fee":
        dates = [date(year, 4, 15)]
    elif event_type == "ca_statement_of_information":
        dates = [date(year, base_date.month, 1)]
        if template.recurring_interval == "biennial":
            dates.append(date(year + 2, base_date.month, 1))
    elif event_type in ("franchise_tax", "tax_filing"):
        dates = [date(year, 3, 15)]
    elif event_type == "boir_filing":
        dates = [
            max(
                base_date + timedelta(days=BOIR_FILING_WINDOW_DAYS),
                BOIR_EARLIEST_DUE_DATE,
            )
        ]
    else:
        dates = [_next_anniversary(base_date, today)]
    return [d for d in dates if d > today]


def _calendar_entry(event: ComplianceEvent, today: date) -> dict:
    return {
        **ComplianceEventRead.model_validate(event).model_dump(),
        "display_status": display_status(event.status, event.due_date, today),
        "days_until_due": days_until_due(event.due_date, today),
    }


def _today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ComplianceEvents:
    @staticmethod
    def generate(
        db: Session, business: BusinessEntity, today: date | None = None
    ) -> list[ComplianceEvent]:
        """Insert the pending events a business is missing; the caller publishes."""
        today = today or _today()
        base_date = business.filed_date or today
        existing = {
            (event_type, due_date)
            for event_type, due_date in db.execute(
                select(ComplianceEvent.event_type, ComplianceEvent.due_date).where(
                    ComplianceEvent.business_entity_id == business.id
                )
            )
        }

        created: list[ComplianceEvent] = []
        for template in COMPLIANCE_TEMPLATES:
            if not template.applies_to(business):
                continue
            frequency = None
            recurring_interval = template.recurring_interval
            if template.requires_state_filing:
                requirement = get_filing_requirement(
                    business.state, business.entity_type
                )
                if not requirement or not requirement["required"]:
                    logger.debug(
                        "No %s filing for %s in %s",
                        template.event_type,
                        business.entity_type,
                        business.state,
                    )
                    continue
                frequency = requirement["frequency"]
                if frequency == "biennial":
                    recurring_interval = "biennial"

            for due_date in calculate_due_dates(template, base_date, today, frequency):
                if (template.event_type, due_date) in existing:
                    continue
                event = ComplianceEvent(
                    business_entity_id=business.id,
                    event_type=template.event_type,
                    title=template.title,
                    description=template.description,
                    due_date=due_date,
                    status=ComplianceEventStatus.pending,
                    priority=template.priority,
                    category=template.category,
                    is_recurring=template.is_recurring,
                    recurring_interval=recurring_interval,
                )
                db.add(event)
                existing.add((template.event_type, due_date))
                created.append(event)

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        for event in created:
            db.refresh(event)
        logger.info(
            "Generated %d compliance events for business %s", len(created), business.id
        )
        return created

    @staticmethod
    def generate_for_business(
        db: Session, business_id: int, person: Person, today: date | None = None
    ) -> dict:
        business = businesses.get(db, business_id, person)
        created = ComplianceEvents.generate(db, business, today)
        if created:
            publish_event(
                EventType.compliance_generated,
                entity_type="business_entity",
                entity_id=business.id,
                actor_id=person.id,
                payload={"generated": len(created)},
            )
        return {
            "business_entity_id": business.id,
            "generated": len(created),
            "events": created,
        }

    @staticmethod
    def calendar(
        db: Session,
        business_id: int,
        person: Person,
        status: str | None = None,
        priority: str | None = None,
        today: date | None = None,
    ) -> list[dict]:
        """Events by due date with their read-time status.

        The ``status`` filter matches the displayed status, so ``pending``
        excludes events that are already overdue.
        """
        today = today or _today()
        business = businesses.get(db, business_id, person)
        stmt = select(ComplianceEvent).where(
            ComplianceEvent.business_entity_id == business.id
        )
        if status is not None:
            if status == OVERDUE:
                stmt = stmt.where(
                    ComplianceEvent.status == ComplianceEventStatus.pending,
                    ComplianceEvent.due_date < today,
                )
            elif status == ComplianceEventStatus.pending.value:
                stmt = stmt.where(
                    ComplianceEvent.status == ComplianceEventStatus.pending,
                    ComplianceEvent.due_date >= today,
                )
            elif status in {e.value for e in ComplianceEventStatus}:
                stmt = stmt.where(
                    ComplianceEvent.status == ComplianceEventStatus(status)
                )
            else:
                raise HTTPException(status_code=400, detail="Invalid status filter")
        if priority is not None:
            if priority not in {e.value for e in CompliancePriority}:
                raise HTTPException(status_code=400, detail="Invalid priority filter")
            stmt = stmt.where(ComplianceEvent.priority == CompliancePriority(priority))
        stmt = stmt.order_by(ComplianceEvent.due_date.asc(), ComplianceEvent.id.asc())
        return [_calendar_entry(event, today) for event in db.scalars(stmt).all()]

    @staticmethod
    def dashboard(
        db: Session, business_id: int, person: Person, today: date | None = None
    ) -> dict:
        today = today or _today()
        business = businesses.get(db, business_id, person)
        events = db.scalars(
            select(ComplianceEvent)
            .where(ComplianceEvent.business_entity_id == business.id)
            .where(ComplianceEvent.status != ComplianceEventStatus.dismissed)
        ).all()
        completed = sum(
            1 for e in events if e.status == ComplianceEventStatus.completed
        )
        return {
            "business_entity_id": business.id,
            "total": len(events),
            "pending": sum(
                1 for e in events if e.status == ComplianceEventStatus.pending
            ),
            "completed": completed,
            "overdue": sum(
                1 for e in events if is_overdue(e.status, e.due_date, today)
            ),
            "due_this_week": sum(
                1 for e in events if is_due_this_week(e.status, e.due_date, today)
            ),
            "compliance_score": compliance_score(completed, len(events)),
        }

    @staticmethod
    def upcoming(
        db: Session,
        business_id: int,
        person: Person,
        days: int = 90,
        today: date | None = None,
    ) -> list[dict]:
        today = today or _today()
        business = businesses.get(db, business_id, person)
        stmt = (
            select(ComplianceEvent)
            .where(ComplianceEvent.business_entity_id == business.id)
            .where(ComplianceEvent.status == ComplianceEventStatus.pending)
            .where(ComplianceEvent.due_date >= today)
            .where(ComplianceEvent.due_date <= today + timedelta(days=days))
            .order_by(ComplianceEvent.due_date.asc(), ComplianceEvent.id.asc())
        )
        entries = []
        for event in db.scalars(stmt).all():
            entry = _calendar_entry(event, today)
            entry["urgency"] = upcoming_urgency(entry["days_until_due"])
            entries.append(entry)
        return entries

    @staticmethod
    def _owned_event(db: Session, event_id: int, person: Person) -> ComplianceEvent:
        event = db.get(ComplianceEvent, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Compliance event not found")
        business = event.business_entity
        if business.owner_id != person.id and not person.is_admin:
            raise HTTPException(status_code=404, detail="Compliance event not found")
        return event

    @staticmethod
    def complete(db: Session, event_id: int, person: Person) -> ComplianceEvent:
        event = ComplianceEvents._owned_event(db, event_id, person)
        if event.status == ComplianceEventStatus.completed:
            return event
        event.status = ComplianceEventStatus.completed
        event.completed_at = datetime.now(timezone.utc)
        event.completed_by = person.id
        db.commit()
        db.refresh(event)
        logger.info("Completed compliance event %s", event.id)
        publish_event(
            EventType.compliance_completed,
            entity_type="compliance_event",
            entity_id=event.id,
            actor_id=person.id,
        )
        return event

    @staticmethod
    def dismiss(db: Session, event_id: int, person: Person) -> ComplianceEvent:
        event = ComplianceEvents._owned_event(db, event_id, person)
        if event.status == ComplianceEventStatus.completed:
            raise HTTPException(
                status_code=400, detail="Completed events cannot be dismissed"
            )
        event.status = ComplianceEventStatus.dismissed
        db.commit()
        db.refresh(event)
        logger.info("Dismissed compliance event %s", event.id)
        publish_event(
            EventType.compliance_dismissed,
            entity_type="compliance_event",
            entity_id=event.id,
            actor_id=person.id,
        )
        return event

    # ------------------------------------------------------------------
    # Scheduled sweeps
    # ------------------------------------------------------------------

    @staticmethod
    def send_reminders(
        db: Session, today: date | None = None, window_days: int = 30
    ) -> int:
        """Create one in-app reminder per event and urgency level.

        Returns the number of notifications created.
        """
        today = today or _today()
        rows = db.execute(
            select(ComplianceEvent, BusinessEntity)
            .join(
                BusinessEntity, ComplianceEvent.business_entity_id == BusinessEntity.id
            )
            .where(ComplianceEvent.status == ComplianceEventStatus.pending)
            .where(BusinessEntity.is_active.is_(True))
            .where(ComplianceEvent.due_date >= today)
            .where(ComplianceEvent.due_date <= today + timedelta(days=window_days))
            .order_by(ComplianceEvent.due_date.asc())
        ).all()

        created = 0
        for event, business in rows:
            days = days_until_due(event.due_date, today)
            urgency = reminder_urgency(days, event.priority)
            if urgency is None:
                continue
            notification = notifications.create(
                db,
                person_id=business.owner_id,
                title=f"Compliance Due: {event.title}",
                body=(
                    f"{business.name}: {event.description}. "
                    f"Due {_describe_due(days)}."
                ),
                event_type=f"compliance.reminder.{urgency}",
                entity_type="compliance_event",
                entity_id=event.id,
                metadata={
                    "business_entity_id": business.id,
                    "due_date": event.due_date.isoformat(),
                    "days_until_due": days,
                    "priority": event.priority.value,
                },
                unique=True,
            )
            if notification is not None:
                created += 1
        db.commit()
        logger.info(
            "Processed %d upcoming compliance events, created %d reminders",
            len(rows),
            created,
        )
        return created

    @staticmethod
    def generate_for_new_businesses(db: Session, today: date | None = None) -> int:
        """Generate events for recently created businesses that have none.

        Returns the number of businesses that received events.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(days=NEW_BUSINESS_LOOKBACK_DAYS)
        has_events = (
            select(ComplianceEvent.id)
            .where(ComplianceEvent.business_entity_id == BusinessEntity.id)
            .exists()
        )
        candidates = db.scalars(
            select(BusinessEntity)
            .where(BusinessEntity.created_at >= cutoff)
            .where(BusinessEntity.is_active.is_(True))
            .where(~has_events)
        ).all()

        processed = 0
        for business in candidates:
            created = ComplianceEvents.generate(db, business, today)
            if created:
                processed += 1
                publish_event(
                    EventType.compliance_generated,
                    entity_type="business_entity",
                    entity_id=business.id,
                    payload={"generated": len(created)},
                )
        logger.info(
            "Generated compliance events for %d of %d new businesses",
            processed,
            len(candidates),
        )
        return processed


compliance_events = ComplianceEvents()
