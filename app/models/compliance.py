import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class ComplianceEventStatus(enum.Enum):
    # "overdue" is derived at read time and never stored.
    pending = "pending"
    completed = "completed"
    dismissed = "dismissed"


class CompliancePriority(enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ComplianceEvent(Base):
    __tablename__ = "compliance_events"
    __table_args__ = (
        UniqueConstraint(
            "business_entity_id",
            "event_type",
            "due_date",
            name="uq_compliance_events_business_type_due",
        ),
        Index("ix_compliance_events_business_entity_id", "business_entity_id"),
        Index("ix_compliance_events_due_date", "due_date"),
        Index("ix_compliance_events_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_entity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("business_entities.id"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(80), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[ComplianceEventStatus] = mapped_column(
        Enum(ComplianceEventStatus), default=ComplianceEventStatus.pending
    )
    priority: Mapped[CompliancePriority] = mapped_column(
        Enum(CompliancePriority), default=CompliancePriority.medium
    )
    category: Mapped[str] = mapped_column(String(80), nullable=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    recurring_interval: Mapped[str | None] = mapped_column(String(40))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("people.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    business_entity = relationship(
        "BusinessEntity", back_populates="compliance_events"
    )
