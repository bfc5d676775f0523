from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.person import Person
from app.schemas.business import BusinessEntityCreate, BusinessEntityRead
from app.schemas.common import ListResponse
from app.services.business import businesses

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.post("", response_model=BusinessEntityRead, status_code=status.HTTP_201_CREATED)
def create_business(
    payload: BusinessEntityCreate,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return businesses.create(db, person, payload)


@router.get("", response_model=ListResponse[BusinessEntityRead])
def list_businesses(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return businesses.list_response(db, person, limit, offset)


@router.get("/{business_id}", response_model=BusinessEntityRead)
def get_business(
    business_id: int,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return businesses.get(db, business_id, person)
