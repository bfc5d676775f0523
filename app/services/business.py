import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.business import BusinessEntity
from app.models.person import Person
from app.schemas.business import BusinessEntityCreate
from app.services.common import apply_pagination
from app.services.filing_requirements import load_filing_requirements
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

ENTITY_TYPES = (
    "LLC",
    "Corporation",
    "Professional Corporation",
    "Non-Profit Corporation",
    "S-Corp",
    "C-Corp",
)


class Businesses(ListResponseMixin):
    @staticmethod
    def create(
        db: Session, person: Person, payload: BusinessEntityCreate
    ) -> BusinessEntity:
        if payload.entity_type not in ENTITY_TYPES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid entity_type. Allowed: {list(ENTITY_TYPES)}",
            )
        if payload.state not in load_filing_requirements().get("states", {}):
            raise HTTPException(
                status_code=400, detail=f"Unknown state: {payload.state}"
            )
        business = BusinessEntity(owner_id=person.id, **payload.model_dump())
        db.add(business)
        db.commit()
        db.refresh(business)
        logger.info("Created business entity %s", business.id)
        return business

    @staticmethod
    def get(db: Session, business_id: int, person: Person) -> BusinessEntity:
        business = db.get(BusinessEntity, business_id)
        if not business or (business.owner_id != person.id and not person.is_admin):
            raise HTTPException(status_code=404, detail="Business entity not found")
        return business

    @staticmethod
    def list(
        db: Session, person: Person, limit: int, offset: int
    ) -> list[BusinessEntity]:
        stmt = (
            select(BusinessEntity)
            .where(BusinessEntity.owner_id == person.id)
            .where(BusinessEntity.is_active.is_(True))
            .order_by(BusinessEntity.created_at.desc(), BusinessEntity.id.desc())
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()


businesses = Businesses()
