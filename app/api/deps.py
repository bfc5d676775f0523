import uuid

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.person import Person


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_user_auth(
    x_person_id: str | None = Header(default=None, alias="X-Person-ID"),
    db: Session = Depends(get_db),
) -> Person:
    """Resolve the person forwarded by the upstream gateway."""
    if not x_person_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        person_id = uuid.UUID(x_person_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Authentication required")
    person = db.get(Person, person_id)
    if not person or not person.is_active:
        raise HTTPException(status_code=401, detail="Authentication required")
    return person


__all__ = ["get_db", "require_user_auth"]
